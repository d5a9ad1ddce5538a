# argsearch/config.py
import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from argsearch.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Определение базовых путей относительно корня проекта
BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = BASE_DIR / "data"
RESOURCES_DIR = DATA_DIR / "resources"
INDEX_DIR = DATA_DIR / "index"
RUNS_DIR = DATA_DIR / "runs"
DEFAULT_CONFIG_PATH = BASE_DIR / "config" / "pipeline.yaml"

# Penn Treebank теги, которые не несут смысла для поиска
# https://dpdearing.com/posts/2011/12/opennlp-part-of-speech-pos-tags-penn-english-treebank/
PENN_STOP_TYPES = [
    ".", ",", ":", "\"", "(", ")", "<", ">", "``", "''", "-LRB-", "-RRB-", "-LSB-", "-RSB-", "-LCB-", "-RCB-",
    "IN",    # Preposition or subordinating conjunction
    "CC",    # Coordinating conjunction
    "PDT",   # Predeterminer
    "POS",   # Possessive ending
    "PRP", "PRP$",
    "RB", "RBR", "RBS",
    "SYM", "RP", "TO", "UH",
    "WDT", "WP", "WP$", "WRB",
    "CD",    # Cardinal number
    "date", "time",
]

# Пунктуация razdel-токенизатора (тип PUNCT, см. analysis.tokenizer) в индекс и запросы не попадает
DEFAULT_REMOVED_TYPES = PENN_STOP_TYPES + ["PUNCT"]

DEFAULT_REPLACEMENTS = {"'s": "is", "'m": "am", "'re": "are"}


class ExpansionStrategy(str, Enum):
    NONE = "none"
    SYNONYMS = "synonyms"
    CATEGORIES = "categories"


class FilterStrategy(str, Enum):
    NONE = "none"
    ORIGINAL_ONLY = "original_only"
    TYPED_ONLY = "typed_only"


class AnalyzerSettings(BaseModel):
    """Какие фильтры и в каком виде собирать в цепочку анализатора."""
    remove_types: List[str] = Field(default_factory=lambda: list(DEFAULT_REMOVED_TYPES))
    split_delimiter: Optional[str] = "-"
    lowercase: bool = True
    replacements: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_REPLACEMENTS))
    stop_words_path: Optional[str] = None

    expansion: ExpansionStrategy = ExpansionStrategy.NONE
    synonyms_path: Optional[str] = None
    categories_path: Optional[str] = None
    # False = пересобирать словари для каждого анализатора, не трогая общий кэш
    reuse_lexicons: bool = True

    stem: bool = True
    type_synonyms: bool = False
    filter_strategy: FilterStrategy = FilterStrategy.NONE

    @model_validator(mode='after')
    def check_expansion_source(self):
        if self.expansion == ExpansionStrategy.SYNONYMS and not self.synonyms_path:
            raise ValueError("expansion 'synonyms' requires synonyms_path")
        if self.expansion == ExpansionStrategy.CATEGORIES and not self.categories_path:
            raise ValueError("expansion 'categories' requires categories_path")
        return self


class EngineSettings(BaseModel):
    """Внешние NLP-модели. Пустые значения = модель не используется."""
    tokenizer: str = "razdel"              # razdel | spacy
    spacy_model: Optional[str] = None      # например, en_core_web_sm
    pos_tagging: bool = False
    entity_engine: Optional[str] = None    # spacy | natasha
    entity_labels: List[str] = Field(default_factory=list)


class RunSettings(BaseModel):
    """Один прогон: индексация коллекции + поиск по темам."""
    run_id: str = Field(min_length=1)
    docs_path: str
    index_path: str
    topics_path: str
    runs_path: str
    qrels_path: Optional[str] = None

    extension: str = ".json"
    parser: str = "task1parser"
    expected_docs: int = Field(default=-1)
    expected_topics: int = Field(default=-1)

    num_workers: int = Field(default=4, ge=1)
    queue_factor: float = Field(default=2.0, gt=0)
    max_docs_retrieved: int = Field(default=1000, ge=1)
    phrase_size: int = Field(default=2, ge=1)

    analyzer: AnalyzerSettings = Field(default_factory=AnalyzerSettings)


class PipelineConfig(BaseModel):
    resources_dir: str = str(RESOURCES_DIR)
    resources: Dict[str, str] = Field(default_factory=dict)   # имя файла -> URL
    engines: EngineSettings = Field(default_factory=EngineSettings)
    runs: List[RunSettings] = Field(default_factory=list)


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> PipelineConfig:
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}

    try:
        config = PipelineConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config {path}: {e}") from e

    logger.info(f"Loaded config {path.name}: {len(config.runs)} run(s)")
    return config
