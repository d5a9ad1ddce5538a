import logging
import re
from typing import Iterable, List, Optional
from razdel import tokenize as razdel_tokenize
from razdel import sentenize as razdel_sentenize

from argsearch.core.data_structures import Token, EOS_FLAG
from argsearch.core.interfaces import TokenStream

logger = logging.getLogger(__name__)

WORD = "WORD"
NUM = "NUM"
PUNCT = "PUNCT"

_NUM_RE = re.compile(r"^\d+(?:[.,]\d+)*$")
_WORD_CHAR_RE = re.compile(r"\w")


def classify(text: str) -> str:
    """Грубый лексический тип токена (аналог <ALPHANUM>/<NUM> у стандартного токенизатора)."""
    if _NUM_RE.match(text):
        return NUM
    if _WORD_CHAR_RE.search(text):
        return WORD
    return PUNCT


class PreparedTokenSource(TokenStream):
    """
    Источник, который один раз готовит список токенов и отдает их копии.
    Копии нужны, чтобы фильтры могли менять токены на месте,
    а повторный проход после reset() давал идентичный результат.
    """

    def __init__(self):
        super().__init__()
        self._tokens: Optional[List[Token]] = None
        self._cursor = 0

    def _prepare(self) -> List[Token]:
        raise NotImplementedError

    def reset(self) -> None:
        super().reset()
        self._cursor = 0

    def _advance(self) -> Optional[Token]:
        if self._tokens is None:
            self._tokens = self._prepare()

        if self._cursor >= len(self._tokens):
            return None

        token = self._tokens[self._cursor].clone()
        self._cursor += 1
        return token


class RazdelTokenizer(PreparedTokenSource):
    """
    Лексический токенизатор на базе Razdel.
    Выдает глобальные оффсеты и ставит EOS_FLAG на последний токен каждого предложения.
    """

    def __init__(self, text: str = ""):
        super().__init__()
        self._text = text

    def set_text(self, text: str) -> None:
        """Новый вход. Перед чтением нужен reset()."""
        self._text = text
        self._tokens = None
        self._cursor = 0

    def _prepare(self) -> List[Token]:
        tokens = []

        for sent_span in razdel_sentenize(self._text):
            sent_tokens = list(razdel_tokenize(sent_span.text))

            for i, rt in enumerate(sent_tokens):
                # Оффсеты razdel локальные (от начала предложения), переводим в глобальные
                global_start = sent_span.start + rt.start
                global_stop = sent_span.start + rt.stop

                # Санити-чек: оффсеты должны указывать на тот же текст
                if self._text[global_start:global_stop] != rt.text:
                    logger.warning(
                        f"Offset mismatch! Token: {rt.text}, "
                        f"Slice: {self._text[global_start:global_stop]}, Global: {global_start}-{global_stop}"
                    )

                tokens.append(Token(
                    text=rt.text,
                    type=classify(rt.text),
                    start_offset=global_start,
                    end_offset=global_stop,
                    flags=EOS_FLAG if i == len(sent_tokens) - 1 else 0
                ))

        return tokens


class CannedTokenizer(PreparedTokenSource):
    """Поток поверх уже готовых токенов (предразмеченный текст, тесты)."""

    def __init__(self, tokens: Iterable[Token]):
        super().__init__()
        self._tokens = list(tokens)

    @classmethod
    def from_terms(cls, terms: Iterable[str], sentence_end: bool = True) -> "CannedTokenizer":
        """
        Собирает поток из строк: оффсеты считаются так, будто термы разделены пробелом.
        """
        tokens = []
        offset = 0
        terms = list(terms)
        for i, term in enumerate(terms):
            is_last = i == len(terms) - 1
            tokens.append(Token(
                text=term,
                type=classify(term),
                start_offset=offset,
                end_offset=offset + len(term),
                flags=EOS_FLAG if (is_last and sentence_end) else 0
            ))
            offset += len(term) + 1
        return cls(tokens)
