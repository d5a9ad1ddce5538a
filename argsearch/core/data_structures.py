# argsearch/core/data_structures.py
from pydantic import BaseModel, Field, model_validator
from typing import Optional, Any

# Бит флага "конец предложения" (выставляется токенизатором на последнем токене предложения)
EOS_FLAG = 1 << 1


class Token(BaseModel):
    """
    Единица, которая течет по цепочке фильтров.
    Фильтры получают токен во владение и могут менять его на месте.
    """
    text: str
    type: Optional[str] = None

    # 0 = альтернатива (синоним) на той же позиции, что и предыдущий токен
    position_increment: int = Field(default=1, ge=0)
    # Сколько позиций занимает токен (больше 1 после слияния сущностей)
    position_length: int = Field(default=1, ge=1)

    # Координаты в исходном тексте
    start_offset: int = Field(default=0, ge=0)
    end_offset: int = Field(default=0, ge=0)

    flags: int = 0
    is_keyword: bool = False

    @model_validator(mode='after')
    def check_offsets(self):
        if self.end_offset < self.start_offset:
            raise ValueError(
                f"Invalid offsets for token '{self.text}': {self.start_offset}-{self.end_offset}"
            )
        return self

    @property
    def is_alternative(self) -> bool:
        return self.position_increment == 0

    @property
    def is_sentence_end(self) -> bool:
        return bool(self.flags & EOS_FLAG)

    def clone(self, **changes: Any) -> "Token":
        return self.model_copy(update=changes)


class Span(BaseModel):
    """Полуинтервал [start, end) по индексам токенов предложения + метка сущности."""
    start: int = Field(ge=0)
    end: int
    label: str

    @model_validator(mode='after')
    def check_range(self):
        if self.end <= self.start:
            raise ValueError(f"Empty span {self.start}-{self.end} ({self.label})")
        return self


class ParsedDocument(BaseModel):
    """Документ коллекции, готовый к индексации."""
    id: str = Field(min_length=1)
    body: str = Field(min_length=1)
    title: str = ""
    domain: str = ""


class FIELDS:
    """Имена полей в индексе."""
    ID = "id"
    TITLE = "title"
    BODY = "body"
    DOMAIN = "domain"


class Topic(BaseModel):
    number: int
    title: str = Field(min_length=1)


class ScoredDocument(BaseModel):
    doc_id: str
    score: float
