# argsearch/engines/spacy_engine.py
import logging
import threading
import weakref
from typing import Callable, Iterable, List

import spacy
from spacy.language import Language
from spacy.tokens import Doc

from argsearch.analysis.tokenizer import PreparedTokenSource
from argsearch.core.data_structures import EOS_FLAG, Span, Token
from argsearch.core.exceptions import ConfigurationError, ResourceError
from argsearch.core.interfaces import EntityTagger, PosTagger, TokenStream

logger = logging.getLogger(__name__)

# nlp -> RLock. Общий для всех адаптеров одной модели
_MODEL_LOCKS = weakref.WeakKeyDictionary()
_MODEL_LOCKS_GUARD = threading.Lock()


def load_spacy(model_name: str, disable: Iterable[str] = ()) -> Language:
    logger.info(f"Loading spaCy model {model_name}...")
    try:
        return spacy.load(model_name, disable=list(disable))
    except OSError as e:
        raise ResourceError(model_name, f"spaCy model is not installed ({e})") from e


def model_lock(nlp: Language):
    """
    Один RLock на экземпляр модели spaCy.
    Токенизатор, POS и NER поверх одной nlp вызывают ее только под этим lock,
    так что два потока никогда не работают с моделью одновременно.
    """
    with _MODEL_LOCKS_GUARD:
        lock = _MODEL_LOCKS.get(nlp)
        if lock is None:
            lock = _MODEL_LOCKS[nlp] = threading.RLock()
        return lock


class SpacyTokenizer(PreparedTokenSource):
    """
    Токенизатор + сегментатор spaCy. Тип токена = Penn-тег (token.tag_).
    Пробельные токены spaCy пропускаются.
    """

    def __init__(self, nlp: Language, text: str = "", lock=None):
        super().__init__()
        self.nlp = nlp
        self.lock = lock if lock is not None else model_lock(nlp)
        self._text = text

    def _prepare(self) -> List[Token]:
        with self.lock:
            doc = self.nlp(self._text)

        tokens = []
        for sent in doc.sents:
            words = [t for t in sent if not t.is_space]
            for i, t in enumerate(words):
                tokens.append(Token(
                    text=t.text,
                    type=t.tag_ or None,
                    start_offset=t.idx,
                    end_offset=t.idx + len(t.text),
                    flags=EOS_FLAG if i == len(words) - 1 else 0
                ))
        return tokens


def spacy_tokenizer_factory(nlp: Language) -> Callable[[str], TokenStream]:
    """Фабрика для Analyzer: lock модели, отдельный поток на каждый текст."""
    lock = model_lock(nlp)

    def factory(text: str) -> TokenStream:
        return SpacyTokenizer(nlp, text, lock)

    return factory


class SpacyPosTagger(PosTagger):
    """POS-теги Penn Treebank по заранее токенизированному предложению."""

    def __init__(self, nlp: Language):
        if not nlp.has_pipe("tagger"):
            raise ConfigurationError(f"spaCy pipeline {nlp.pipe_names} has no 'tagger' component.")
        self.nlp = nlp
        self.lock = model_lock(nlp)

    def tag(self, terms: List[str]) -> List[str]:
        with self.lock:
            doc = self.nlp(Doc(self.nlp.vocab, words=terms))
        return [t.tag_ for t in doc]


class SpacyEntityTagger(EntityTagger):
    """
    NER spaCy по заранее токенизированному предложению.
    labels ограничивает набор сущностей (например, PERSON, GPE); пустой = все.
    """

    def __init__(self, nlp: Language, labels: Iterable[str] = ()):
        if not nlp.has_pipe("ner"):
            raise ConfigurationError(f"spaCy pipeline {nlp.pipe_names} has no 'ner' component.")
        self.nlp = nlp
        self.lock = model_lock(nlp)
        self.labels = frozenset(labels)

    def find_spans(self, terms: List[str]) -> List[Span]:
        with self.lock:
            doc = self.nlp(Doc(self.nlp.vocab, words=terms))
        return [
            Span(start=ent.start, end=ent.end, label=ent.label_)
            for ent in doc.ents
            if not self.labels or ent.label_ in self.labels
        ]
