import logging
import threading
from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Optional, Sequence, Union

from argsearch.config import AnalyzerSettings, ExpansionStrategy, FilterStrategy
from argsearch.core.data_structures import Token
from argsearch.core.exceptions import ConfigurationError
from argsearch.core.interfaces import TokenStream
from .injectors import CategoryFilter, SynonymFilter, TypeConcatenateSynonymFilter
from .lexical import LowerCaseFilter, PorterStemFilter, StopFilter
from .lexicon import CategoryMap, LexiconRegistry, SynonymMap
from .sentence import EntityMergeFilter, PosTagFilter, SynchronizedTagger
from .structural import Keep, RemoveTypesFilter, SeparateTokenTypesFilter, SplitOnDelimiterFilter, StringReplaceFilter
from .tokenizer import RazdelTokenizer

logger = logging.getLogger(__name__)

TokenizerFactory = Callable[[str], TokenStream]


@dataclass(frozen=True)
class _Lexicons:
    stop_words: FrozenSet[str]
    synonyms: Optional[SynonymMap]
    categories: Optional[CategoryMap]


class Analyzer:
    """
    Фабрика цепочек фильтров.

    Сам анализатор хранит только неизменяемую конфигурацию, общие словари
    и синхронизированные теггеры, поэтому его можно делить между потоками.
    Каждый вызов token_stream() строит новую независимую цепочку:
    у фильтров есть локальное состояние (буферы предложений, очереди альтернатив).

    Порядок цепочки:
    tokenizer -> POS -> NER merge -> remove types -> split -> lowercase -> replace
    -> stop -> synonyms|categories -> stem -> <type>term -> separate types
    """

    def __init__(self,
                 settings: Optional[AnalyzerSettings] = None,
                 registry: Optional[LexiconRegistry] = None,
                 tokenizer_factory: Optional[TokenizerFactory] = None,
                 pos_tagger: Optional[SynchronizedTagger] = None,
                 entity_taggers: Sequence[SynchronizedTagger] = ()):
        self.settings = settings or AnalyzerSettings()
        self.registry = registry or LexiconRegistry()
        self.tokenizer_factory = tokenizer_factory or RazdelTokenizer

        for tagger in [pos_tagger, *entity_taggers]:
            if tagger is not None and not isinstance(tagger, SynchronizedTagger):
                raise ConfigurationError(
                    f"Taggers must be wrapped in SynchronizedTagger, got {type(tagger).__name__}."
                )
        self.pos_tagger = pos_tagger
        self.entity_taggers = tuple(entity_taggers)

        self._lexicons: Optional[_Lexicons] = None
        self._lock = threading.Lock()

    def derive(self, **changes) -> "Analyzer":
        """Копия анализатора с измененными настройками (словари и теггеры общие)."""
        settings = self.settings.model_copy(update=changes)
        return Analyzer(settings, self.registry, self.tokenizer_factory, self.pos_tagger, self.entity_taggers)

    def _resolve_lexicons(self) -> _Lexicons:
        """Словари загружаются при первом использовании анализатора."""
        with self._lock:
            if self._lexicons is None:
                s = self.settings
                reuse = s.reuse_lexicons

                stop_words = self.registry.word_list(s.stop_words_path, reuse) if s.stop_words_path else frozenset()
                synonyms = None
                categories = None
                if s.expansion == ExpansionStrategy.SYNONYMS:
                    synonyms = self.registry.synonyms(s.synonyms_path, reuse)
                elif s.expansion == ExpansionStrategy.CATEGORIES:
                    categories = self.registry.categories(s.categories_path, reuse)

                self._lexicons = _Lexicons(stop_words, synonyms, categories)
            return self._lexicons

    def token_stream(self, text: Union[str, TokenStream]) -> TokenStream:
        """Новая цепочка фильтров поверх текста (или готового потока токенов)."""
        s = self.settings
        lexicons = self._resolve_lexicons()

        stream = text if isinstance(text, TokenStream) else self.tokenizer_factory(text)

        # 1. Разметка уровня предложения
        if self.pos_tagger is not None:
            stream = PosTagFilter(stream, self.pos_tagger)
        for tagger in self.entity_taggers:
            stream = EntityMergeFilter(stream, tagger)

        # 2. Структурная нормализация
        if s.remove_types:
            stream = RemoveTypesFilter(stream, s.remove_types)
        if s.split_delimiter:
            stream = SplitOnDelimiterFilter(stream, s.split_delimiter)
        if s.lowercase:
            stream = LowerCaseFilter(stream)
        for pattern, replacement in s.replacements.items():
            stream = StringReplaceFilter(stream, pattern, replacement)
        if lexicons.stop_words:
            stream = StopFilter(stream, lexicons.stop_words)

        # 3. Альтернативы на той же позиции
        if lexicons.synonyms is not None:
            stream = SynonymFilter(stream, lexicons.synonyms)
        elif lexicons.categories is not None:
            stream = CategoryFilter(stream, lexicons.categories)

        if s.stem:
            stream = PorterStemFilter(stream)
        if s.type_synonyms:
            stream = TypeConcatenateSynonymFilter(stream)

        # 4. Какие токены оставить в итоговом потоке
        if s.filter_strategy == FilterStrategy.ORIGINAL_ONLY:
            stream = SeparateTokenTypesFilter(stream, Keep.ORIGINAL)
        elif s.filter_strategy == FilterStrategy.TYPED_ONLY:
            stream = SeparateTokenTypesFilter(stream, Keep.TYPED)

        return stream

    def analyze(self, text: Union[str, TokenStream]) -> List[Token]:
        with self.token_stream(text) as stream:
            stream.reset()
            tokens = list(stream)
            stream.end()
        return tokens

    def terms(self, text: str) -> List[str]:
        return [t.text for t in self.analyze(text)]
