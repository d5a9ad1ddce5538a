# argsearch/core/interfaces.py
from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Optional
from .data_structures import Token, Span, ScoredDocument


class TokenStream(ABC):
    """
    Pull-поток токенов: reset() -> next() ... -> end() -> close().
    next() возвращает None на конце потока, и все последующие вызовы
    тоже возвращают None (до следующего reset()).
    Экземпляр не потокобезопасен: читает ровно один потребитель.
    """

    def __init__(self):
        self._exhausted = False

    def next(self) -> Optional[Token]:
        if self._exhausted:
            return None
        token = self._advance()
        if token is None:
            self._exhausted = True
        return token

    @abstractmethod
    def _advance(self) -> Optional[Token]:
        """Вычисляет следующий токен или None, если поток закончился."""
        pass

    def reset(self) -> None:
        self._exhausted = False

    def end(self) -> None:
        pass

    def close(self) -> None:
        pass

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next()
            if token is None:
                return
            yield token

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class TokenFilter(TokenStream):
    """Фильтр-обертка: next() фильтра тянет токены из next() входного потока."""

    def __init__(self, input_stream: TokenStream):
        super().__init__()
        self.input = input_stream

    def reset(self) -> None:
        super().reset()
        self.input.reset()

    def end(self) -> None:
        self.input.end()

    def close(self) -> None:
        self.input.close()


class PosTagger(ABC):
    @abstractmethod
    def tag(self, terms: List[str]) -> List[str]:
        """
        Принимает термы одного предложения.
        Возвращает по одному тегу на каждый терм.
        """
        pass

    def reset(self) -> None:
        pass


class EntityTagger(ABC):
    @abstractmethod
    def find_spans(self, terms: List[str]) -> List[Span]:
        """
        Принимает термы одного предложения.
        Возвращает спаны сущностей (индексы по списку термов).
        """
        pass

    def reset(self) -> None:
        """Забыть адаптивные данные, накопленные на предыдущих документах."""
        pass


class IndexWriter(ABC):
    @abstractmethod
    def add_document(self, doc_id: str, fields: Dict[str, List[Token]], stored: Dict[str, str]) -> None:
        pass

    @abstractmethod
    def commit(self) -> None:
        pass

    def close(self) -> None:
        pass


class IndexSearcher(ABC):
    @abstractmethod
    def search(self, query, limit: int) -> List[ScoredDocument]:
        pass

    @property
    @abstractmethod
    def num_docs(self) -> int:
        pass

    def close(self) -> None:
        pass
