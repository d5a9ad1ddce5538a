"""
Построение запросов из проанализированного потока.

Слот (term slot) = основной токен + его альтернативы с инкрементом 0.
Фразовые запросы строятся скользящим окном по слотам: каждый слот
на своем смещении внутри фразы допускает любой из своих термов.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from argsearch.core.exceptions import StreamProtocolError
from argsearch.core.interfaces import TokenStream

logger = logging.getLogger(__name__)

TermSlot = Tuple[str, ...]


@dataclass(frozen=True)
class TermQuery:
    field: str
    term: str


@dataclass(frozen=True)
class MultiPhraseQuery:
    """Фраза: slots[i] - взаимозаменяемые термы на i-й позиции."""
    field: str
    slots: Tuple[TermSlot, ...]


@dataclass(frozen=True)
class BooleanQuery:
    """Дизъюнкция (SHOULD) подзапросов; boost умножает итоговый скор."""
    clauses: Tuple[object, ...] = field(default_factory=tuple)
    boost: float = 1.0

    def __len__(self) -> int:
        return len(self.clauses)


def collect_term_slots(stream: TokenStream) -> List[TermSlot]:
    """Читает поток целиком (reset/next/end/close) и группирует токены по позициям."""
    slots: List[List[str]] = []
    with stream:
        stream.reset()
        for token in stream:
            if token.position_increment > 0:
                slots.append([token.text])
            elif slots:
                slots[-1].append(token.text)
            else:
                raise StreamProtocolError(
                    f"Alternative '{token.text}' appears before any primary token"
                )
        stream.end()

    return [tuple(slot) for slot in slots]


def phrase_windows(slots: Sequence[TermSlot], size: int) -> List[Tuple[TermSlot, ...]]:
    """Все окна из size подряд идущих слотов: ровно max(0, L - size + 1) штук."""
    if size <= 0:
        raise ValueError(f"Window size must be positive, got {size}")
    return [tuple(slots[i:i + size]) for i in range(len(slots) - size + 1)]


def _build(field_name: str, slots: Sequence[TermSlot], size: int) -> BooleanQuery:
    clauses = tuple(MultiPhraseQuery(field_name, window) for window in phrase_windows(slots, size))
    return BooleanQuery(clauses)


class PhraseQueryGenerator:
    """Фразы из size подряд идущих позиций с учетом синонимов."""

    @staticmethod
    def create(analyzer, field_name: str, query_text: str, size: int) -> BooleanQuery:
        slots = collect_term_slots(analyzer.token_stream(query_text))
        query = _build(field_name, slots, size)
        if not query.clauses:
            logger.debug(f"Query '{query_text}' has {len(slots)} slot(s), no {size}-term phrases")
        return query


def _reject_group_len(slot_count: int) -> int:
    raise ValueError(f"Phrase length is too big for a query of {slot_count} term(s)")


class SubsequencePhraseQueryGenerator:
    """
    Как PhraseQueryGenerator, но если запрос короче нужной фразы,
    длину выбирает политика on_too_long(число слотов):
    новое значение <= 0 означает "запрос не строится" (None).
    """

    @staticmethod
    def create(analyzer, field_name: str, query_text: str, group_len: int,
               on_too_long: Callable[[int], int] = _reject_group_len) -> Optional[BooleanQuery]:
        slots = collect_term_slots(analyzer.token_stream(query_text))

        if group_len > len(slots) or group_len <= 0:
            group_len = on_too_long(len(slots))
            if group_len <= 0:
                return None
            if group_len > len(slots):
                raise ValueError(f"Phrase length {group_len} is too big for {len(slots)} term(s)")

        return _build(field_name, slots, group_len)


class TermQueryGenerator:
    """Мешок термов: каждый токен потока (включая альтернативы) - отдельный TermQuery."""

    @staticmethod
    def create(analyzer, field_name: str, query_text: str, boost: float = 1.0) -> BooleanQuery:
        slots = collect_term_slots(analyzer.token_stream(query_text))
        clauses = tuple(TermQuery(field_name, term) for slot in slots for term in slot)
        return BooleanQuery(clauses, boost)
