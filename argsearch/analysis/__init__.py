from .analyzer import Analyzer
from .injectors import (
    AlternativeInjectionFilter,
    CategoryFilter,
    SynonymFilter,
    TypeAsSynonymFilter,
    TypeConcatenateSynonymFilter,
)
from .lexical import LowerCaseFilter, PorterStemFilter, StopFilter
from .lexicon import CategoryMap, LexiconRegistry, SynonymMap
from .sentence import EntityMergeFilter, PosTagFilter, SynchronizedTagger
from .structural import (
    Keep,
    MarkTypeFilter,
    RemoveTypesFilter,
    ReplaceMode,
    SeparateTokenTypesFilter,
    SeparateTypeSynonymsFilter,
    SplitOnDelimiterFilter,
    StringReplaceFilter,
    TypeSynonymStrategy,
)
from .tokenizer import CannedTokenizer, RazdelTokenizer
