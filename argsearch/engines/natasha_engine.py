# argsearch/engines/natasha_engine.py
import logging
from typing import Iterable, List, Tuple

from natasha import Doc, NewsEmbedding, NewsNERTagger, Segmenter

from argsearch.core.data_structures import Span
from argsearch.core.interfaces import EntityTagger

logger = logging.getLogger(__name__)


def char_spans_to_term_spans(terms: List[str], char_spans: Iterable[Tuple[int, int, str]]) -> List[Span]:
    """
    Переводит символьные спаны (по тексту ' '.join(terms)) в спаны по индексам термов.
    Терм входит в спан, если пересекается с ним по символам.
    Перекрывающиеся спаны отбрасываются (побеждает более ранний).
    """
    # 1. Символьные границы каждого терма в склеенном тексте
    bounds = []
    offset = 0
    for term in terms:
        bounds.append((offset, offset + len(term)))
        offset += len(term) + 1

    # 2. Пересечение каждого спана с границами термов
    spans = []
    previous_end = 0
    for start, stop, label in sorted(char_spans):
        covered = [i for i, (b_start, b_stop) in enumerate(bounds) if b_start < stop and start < b_stop]
        if not covered:
            continue
        first, last = covered[0], covered[-1] + 1
        if first < previous_end:
            logger.debug(f"Dropping overlapping span {start}-{stop} ({label})")
            continue
        spans.append(Span(start=first, end=last, label=label))
        previous_end = last

    return spans


class NatashaEntityTagger(EntityTagger):
    """NER Natasha (Slovnet): PER, LOC, ORG для русского текста."""

    def __init__(self, labels: Iterable[str] = ()):
        logger.info("Loading Natasha NER models (Slovnet)...")
        self.segmenter = Segmenter()
        self.emb = NewsEmbedding()
        self.ner_tagger = NewsNERTagger(self.emb)
        self.labels = frozenset(labels)
        logger.info("Natasha NER is ready")

    def find_spans(self, terms: List[str]) -> List[Span]:
        if not terms:
            return []

        doc = Doc(" ".join(terms))
        doc.segment(self.segmenter)
        doc.tag_ner(self.ner_tagger)

        char_spans = [
            (span.start, span.stop, span.type)
            for span in doc.spans
            if not self.labels or span.type in self.labels
        ]
        return char_spans_to_term_spans(terms, char_spans)
