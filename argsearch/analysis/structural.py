"""
Структурные фильтры: разбиение по разделителю, фильтрация по типу,
разделение исходных и типизированных токенов, замена текста.
"""
import logging
from collections import deque
from enum import Enum
from typing import Deque, Iterable, Optional

from argsearch.core.data_structures import Token
from argsearch.core.exceptions import ConfigurationError, StreamProtocolError
from argsearch.core.interfaces import TokenFilter, TokenStream
from .injectors import is_type_marked, mark_type

logger = logging.getLogger(__name__)


def is_type_synonym(text: str) -> bool:
    """'<NN>' - тип, внедренный как синоним (целиком в угловых скобках)."""
    return len(text) >= 2 and text[0] == "<" and text[-1] == ">"


class SplitOnDelimiterFilter(TokenFilter):
    """
    'performance-enhancing' -> 'performance', 'enhancing'.
    Части наследуют тип и оффсеты исходного токена, каждая занимает свою позицию.
    k разделителей всегда дают k+1 токенов: пустые части ('a--b', '-pre') сохраняются.
    """

    def __init__(self, input_stream: TokenStream, delimiter: str = "-"):
        super().__init__(input_stream)
        if not delimiter:
            raise ConfigurationError("Delimiter must be a non-empty string.")
        self.delimiter = delimiter
        self._pending: Deque[Token] = deque()

    def _advance(self) -> Optional[Token]:
        if self._pending:
            return self._pending.popleft()

        token = self.input.next()
        if token is None:
            return None
        if token.is_keyword or self.delimiter not in token.text:
            return token

        parts = token.text.split(self.delimiter)
        for part in parts[1:]:
            self._pending.append(token.clone(text=part, position_increment=1))

        token.text = parts[0]
        return token

    def reset(self) -> None:
        super().reset()
        self._pending.clear()


class RemoveTypesFilter(TokenFilter):
    """Отбрасывает токены, тип которых входит в исключаемое множество."""

    def __init__(self, input_stream: TokenStream, types: Iterable[str]):
        super().__init__(input_stream)
        self.types = frozenset(types)

    def _advance(self) -> Optional[Token]:
        while True:
            token = self.input.next()
            if token is None:
                return None
            if token.type not in self.types:
                return token


class Keep(Enum):
    ORIGINAL = "original"
    TYPED = "typed"


class SeparateTokenTypesFilter(TokenFilter):
    """
    Из потока 'cat <NN>cat sat <VBD>sat' оставляет либо исходные токены (cat sat),
    либо только типизированные (<NN>cat <VBD>sat) с инкрементом 1.
    """

    def __init__(self, input_stream: TokenStream, keep: Keep):
        super().__init__(input_stream)
        if not isinstance(keep, Keep):
            raise ConfigurationError(f"Unknown keep mode: {keep!r}")
        self.keep = keep

    def _advance(self) -> Optional[Token]:
        while True:
            token = self.input.next()
            if token is None:
                return None

            typed = is_type_marked(token.text)
            if self.keep is Keep.ORIGINAL and not typed:
                return token
            if self.keep is Keep.TYPED and typed:
                token.position_increment = 1
                return token


class TypeSynonymStrategy(Enum):
    ORIGINAL_ONLY = "original_only"   # убрать синонимы-типы
    TYPES_ONLY = "types_only"         # оставить только типы
    RESTORE_TYPES = "restore_types"   # убрать синонимы-типы, вернув их в token.type


class SeparateTypeSynonymsFilter(TokenFilter):
    """Обработка типов, внедренных в поток как синонимы ('<NN>' на позиции слова)."""

    def __init__(self, input_stream: TokenStream, strategy: TypeSynonymStrategy):
        super().__init__(input_stream)
        if not isinstance(strategy, TypeSynonymStrategy):
            raise ConfigurationError(f"Unknown type synonym strategy: {strategy!r}")
        self.strategy = strategy

    def _advance(self) -> Optional[Token]:
        if self.strategy is TypeSynonymStrategy.ORIGINAL_ONLY:
            return self._original_only()
        if self.strategy is TypeSynonymStrategy.TYPES_ONLY:
            return self._types_only()
        return self._restore_types()

    def _original_only(self) -> Optional[Token]:
        while True:
            token = self.input.next()
            if token is None:
                return None
            if not (token.is_alternative and is_type_synonym(token.text)):
                return token

    def _types_only(self) -> Optional[Token]:
        while True:
            token = self.input.next()
            if token is None:
                return None
            if token.is_alternative or is_type_synonym(token.text):
                break

        token.text = token.text[1:-1] if is_type_synonym(token.text) else token.text
        token.position_increment = 1
        return token

    def _restore_types(self) -> Optional[Token]:
        token = self.input.next()
        if token is None:
            return None
        if token.is_alternative:
            raise StreamProtocolError(f"Token '{token.text}' must not be a synonym here")

        # Ищем синоним-тип среди альтернатив этой позиции
        while True:
            alternative = self.input.next()
            if alternative is None:
                raise StreamProtocolError(f"Type synonym not found for '{token.text}', stream ended")
            if not alternative.is_alternative:
                raise StreamProtocolError(f"Type synonym absent for '{token.text}'")
            if is_type_synonym(alternative.text):
                break

        token.type = alternative.text[1:-1]
        token.position_increment = 1
        return token


class ReplaceMode(Enum):
    EXACT = "exact"
    SUBSTRING = "substring"


class StringReplaceFilter(TokenFilter):
    """Замена текста токена: целиком ('s -> is) или всех вхождений подстроки."""

    def __init__(self, input_stream: TokenStream, pattern: str, replacement: str,
                 mode: ReplaceMode = ReplaceMode.EXACT):
        super().__init__(input_stream)
        if not pattern:
            raise ConfigurationError("Replace pattern must be a non-empty string.")
        self.pattern = pattern
        self.replacement = replacement
        self.mode = mode

    def _advance(self) -> Optional[Token]:
        token = self.input.next()
        if token is None or token.is_keyword:
            return token

        if self.mode is ReplaceMode.EXACT:
            if token.text == self.pattern:
                token.text = self.replacement
        elif self.pattern in token.text:
            token.text = token.text.replace(self.pattern, self.replacement)

        return token


class MarkTypeFilter(TokenFilter):
    """NN -> <NN> в token.type."""

    def _advance(self) -> Optional[Token]:
        token = self.input.next()
        if token is not None and token.type:
            token.type = mark_type(token.type)
        return token
