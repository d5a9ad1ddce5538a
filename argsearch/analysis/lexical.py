import logging
from typing import Iterable, Optional

from nltk.stem.porter import PorterStemmer

from argsearch.core.data_structures import Token
from argsearch.core.interfaces import TokenFilter, TokenStream
from .injectors import is_type_marked

logger = logging.getLogger(__name__)


class LowerCaseFilter(TokenFilter):
    def _advance(self) -> Optional[Token]:
        token = self.input.next()
        if token is not None:
            token.text = token.text.lower()
        return token


class StopFilter(TokenFilter):
    """
    Удаляет стоп-слова. Дыр в позициях не оставляет:
    следующий сохраненный токен идет со своим собственным инкрементом.
    """

    def __init__(self, input_stream: TokenStream, words: Iterable[str]):
        super().__init__(input_stream)
        self.words = frozenset(words)

    def _advance(self) -> Optional[Token]:
        while True:
            token = self.input.next()
            if token is None:
                return None
            if token.is_keyword or token.text not in self.words:
                return token


class PorterStemFilter(TokenFilter):
    """Стемминг Портера (nltk). Ключевые слова и '<type>'-токены не трогаются."""

    def __init__(self, input_stream: TokenStream, stemmer: Optional[PorterStemmer] = None):
        super().__init__(input_stream)
        self.stemmer = stemmer or PorterStemmer()

    def _advance(self) -> Optional[Token]:
        token = self.input.next()
        if token is None or token.is_keyword or not token.text or is_type_marked(token.text):
            return token

        token.text = self.stemmer.stem(token.text, to_lowercase=False)
        return token
