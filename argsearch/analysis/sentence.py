import logging
import threading
from collections import deque
from typing import Deque, List, Optional, Union

from argsearch.core.data_structures import Token, Span
from argsearch.core.exceptions import ConfigurationError, StreamProtocolError
from argsearch.core.interfaces import TokenFilter, TokenStream, PosTagger, EntityTagger

logger = logging.getLogger(__name__)


class SynchronizedTagger:
    """
    Критическая секция вокруг внешнего теггера.
    Модели spaCy и Natasha не потокобезопасны, поэтому один экземпляр
    теггера, общий для всех рабочих потоков, вызывается только под его lock.
    Обертка создается один раз на теггер и передается во все цепочки фильтров.

    Если несколько адаптеров работают поверх одной модели (токенизатор, POS и NER spaCy),
    им передается общий lock модели: критическая секция привязана к модели, а не к адаптеру.
    """

    def __init__(self, tagger: Union[PosTagger, EntityTagger], lock=None):
        if tagger is None:
            raise ConfigurationError("Tagger cannot be None.")
        self.tagger = tagger
        # RLock: адаптер внутри может повторно взять тот же lock модели
        self.lock = lock if lock is not None else threading.RLock()

    def tag(self, terms: List[str]) -> List[str]:
        with self.lock:
            return self.tagger.tag(terms)

    def find_spans(self, terms: List[str]) -> List[Span]:
        with self.lock:
            return self.tagger.find_spans(terms)

    def reset(self) -> None:
        with self.lock:
            self.tagger.reset()

    def __repr__(self):
        return f"SynchronizedTagger({self.tagger!r})"


class SentenceBufferFilter(TokenFilter):
    """
    Базовый фильтр уровня предложения: копит токены до EOS_FLAG (или конца потока),
    обрабатывает предложение целиком и затем отдает результат по одному токену.
    """

    def __init__(self, input_stream: TokenStream, tagger: SynchronizedTagger):
        super().__init__(input_stream)
        if not isinstance(tagger, SynchronizedTagger):
            raise ConfigurationError(
                f"{type(self).__name__} requires a SynchronizedTagger, got {type(tagger).__name__}."
            )
        self.tagger = tagger
        self._pending: Deque[Token] = deque()

        # Забываем адаптивные данные предыдущих вызовов
        self.tagger.reset()

    def _advance(self) -> Optional[Token]:
        while not self._pending:
            sentence = self._read_sentence()
            if not sentence:
                return None
            self._pending.extend(self._process_sentence(sentence))

        return self._pending.popleft()

    def _read_sentence(self) -> List[Token]:
        sentence = []
        while True:
            token = self.input.next()
            if token is None:
                break
            sentence.append(token)
            if token.is_sentence_end:
                break
        return sentence

    def _process_sentence(self, sentence: List[Token]) -> List[Token]:
        raise NotImplementedError

    def reset(self) -> None:
        super().reset()
        self._pending.clear()
        # Под lock только сам теггер: сброс цепочки выше его не касается
        self.tagger.reset()


class PosTagFilter(SentenceBufferFilter):
    """Проставляет частеречный тег (POS) в token.type, один вызов теггера на предложение."""

    def _process_sentence(self, sentence: List[Token]) -> List[Token]:
        terms = [t.text for t in sentence]
        tags = self.tagger.tag(terms)

        if len(tags) != len(terms):
            raise StreamProtocolError(
                f"POS tagger returned {len(tags)} tags for {len(terms)} terms: {terms}"
            )

        for token, tag in zip(sentence, tags):
            token.type = tag
        return sentence


class EntityMergeFilter(SentenceBufferFilter):
    """
    Сливает многотокенные сущности (спаны NER-теггера) в один токен.

    Для каждого спана:
    1. Термы склеиваются через пробел, position_length суммируется.
    2. Флаги объединяются (OR), оффсеты берутся от первого и последнего токена.
    3. Тип = метка спана, токен помечается как keyword (не трогается стеммером и т.п.).
    Токены вне спанов проходят без изменений.
    """

    def _process_sentence(self, sentence: List[Token]) -> List[Token]:
        terms = [t.text for t in sentence]
        spans = sorted(self.tagger.find_spans(terms), key=lambda s: (s.start, s.end))
        self._check_spans(spans, len(sentence), terms)

        merged = []
        cursor = 0
        for span in spans:
            merged.extend(sentence[cursor:span.start])
            merged.append(self._merge(sentence[span.start:span.end], span.label))
            cursor = span.end
        merged.extend(sentence[cursor:])

        return merged

    @staticmethod
    def _check_spans(spans: List[Span], size: int, terms: List[str]) -> None:
        previous_end = 0
        for span in spans:
            if span.start < previous_end or span.end > size:
                raise StreamProtocolError(
                    f"Invalid entity span {span.start}-{span.end} ({span.label}) "
                    f"for sentence of {size} terms: {terms}"
                )
            previous_end = span.end

    @staticmethod
    def _merge(covered: List[Token], label: str) -> Token:
        first, last = covered[0], covered[-1]

        flags = 0
        for token in covered:
            flags |= token.flags

        entity = Token(
            text=" ".join(t.text for t in covered),
            type=label,
            position_increment=first.position_increment,
            position_length=sum(t.position_length for t in covered),
            start_offset=first.start_offset,
            end_offset=last.end_offset,
            flags=flags,
            is_keyword=True
        )
        logger.debug(f"Merged entity '{entity.text}' ({label}), {len(covered)} token(s)")
        return entity
