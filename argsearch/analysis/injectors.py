import logging
from collections import deque
from typing import Deque, List, Optional

from argsearch.core.data_structures import Token
from argsearch.core.exceptions import ConfigurationError
from argsearch.core.interfaces import TokenFilter, TokenStream
from .lexicon import SynonymMap, CategoryMap

logger = logging.getLogger(__name__)


def mark_type(type_name: str) -> str:
    return f"<{type_name}>"


def is_type_marked(text: str) -> bool:
    return text.startswith("<")


class AlternativeInjectionFilter(TokenFilter):
    """
    Общая схема инъекции альтернатив:
    сначала отдается основной токен (со своим инкрементом),
    затем его альтернативы на той же позиции (position_increment = 0).
    """

    def __init__(self, input_stream: TokenStream):
        super().__init__(input_stream)
        self._pending: Deque[Token] = deque()

    def alternatives(self, token: Token) -> List[str]:
        """Строки-альтернативы для токена (могут содержать сам терм и повторы)."""
        raise NotImplementedError

    def _advance(self) -> Optional[Token]:
        if self._pending:
            return self._pending.popleft()

        token = self.input.next()
        if token is None:
            return None

        seen = {token.text}
        for alternative in self.alternatives(token):
            if alternative in seen:
                continue
            seen.add(alternative)
            self._pending.append(token.clone(text=alternative, position_increment=0))

        return token

    def reset(self) -> None:
        super().reset()
        self._pending.clear()


class SynonymFilter(AlternativeInjectionFilter):
    """Синонимы из словаря (WordNet)."""

    def __init__(self, input_stream: TokenStream, synonyms: SynonymMap):
        super().__init__(input_stream)
        if synonyms is None:
            raise ConfigurationError("SynonymFilter requires a synonym map.")
        self.synonyms = synonyms

    def alternatives(self, token: Token) -> List[str]:
        return list(self.synonyms.lookup(token.text))


class CategoryFilter(AlternativeInjectionFilter):
    """Категория слова (noun.animal -> 'animal') как альтернатива на той же позиции."""

    def __init__(self, input_stream: TokenStream, categories: CategoryMap):
        super().__init__(input_stream)
        if categories is None:
            raise ConfigurationError("CategoryFilter requires a category map.")
        self.categories = categories

    def alternatives(self, token: Token) -> List[str]:
        category = self.categories.lookup(token.text)
        return [category] if category else []


class TypeAsSynonymFilter(AlternativeInjectionFilter):
    """Сам тип токена как альтернатива (после MarkTypeFilter это '<NN>')."""

    def alternatives(self, token: Token) -> List[str]:
        return [token.type] if token.type else []


class TypeConcatenateSynonymFilter(AlternativeInjectionFilter):
    """'<type>term' как альтернатива: позволяет искать слово с учетом его тега."""

    def alternatives(self, token: Token) -> List[str]:
        if not token.type:
            return []
        return [mark_type(token.type) + token.text]
