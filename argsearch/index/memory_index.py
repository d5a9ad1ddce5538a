# argsearch/index/memory_index.py
import json
import logging
import math
import threading
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Union

from argsearch.core.data_structures import ScoredDocument, Token
from argsearch.core.exceptions import ResourceError
from argsearch.core.interfaces import IndexSearcher, IndexWriter
from argsearch.search.queries import BooleanQuery, MultiPhraseQuery, TermQuery

logger = logging.getLogger(__name__)

INDEX_FILE = "index.json"

# field -> term -> номер документа -> позиции
Postings = Dict[str, Dict[str, Dict[int, List[int]]]]


class MemoryIndex(IndexWriter, IndexSearcher):
    """
    Позиционный индекс в памяти.
    Запись сериализуется внутренним lock, поиск только читает.
    Скор - простой tf-idf: это заглушка движка, а не модель ранжирования.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._doc_ids: List[str] = []
        self._stored: List[Dict[str, str]] = []
        self._postings: Postings = defaultdict(dict)
        self._lock = threading.Lock()

    # --- IndexWriter ---

    def add_document(self, doc_id: str, fields: Dict[str, List[Token]], stored: Dict[str, str]) -> None:
        # Позиции считаются вне lock: это чистая функция от токенов
        field_positions = {name: list(self._positions(tokens)) for name, tokens in fields.items()}

        with self._lock:
            doc_num = len(self._doc_ids)
            self._doc_ids.append(doc_id)
            self._stored.append(dict(stored))

            for name, positions in field_positions.items():
                field_postings = self._postings[name]
                for term, position in positions:
                    field_postings.setdefault(term, {}).setdefault(doc_num, []).append(position)

    @staticmethod
    def _positions(tokens: List[Token]):
        position = -1
        for token in tokens:
            position = max(position + token.position_increment, 0)
            yield token.text, position

    def commit(self) -> None:
        if self.path is None:
            return
        self.save(self.path)

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)
        index_file = path / INDEX_FILE

        with self._lock:
            data = {
                "docs": self._doc_ids,
                "stored": self._stored,
                "postings": {
                    name: {term: {str(doc): pos for doc, pos in docs.items()} for term, docs in terms.items()}
                    for name, terms in self._postings.items()
                },
            }
            with open(index_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False)

        logger.info(f"Index with {len(self._doc_ids)} document(s) saved to {index_file}")
        return index_file

    @classmethod
    def open(cls, path: Union[str, Path]) -> "MemoryIndex":
        index_file = Path(path) / INDEX_FILE
        if not index_file.is_file():
            raise ResourceError(str(index_file), "index not found")
        try:
            with open(index_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ResourceError(str(index_file), str(e)) from e

        index = cls(path)
        index._doc_ids = list(data["docs"])
        index._stored = list(data["stored"])
        for name, terms in data["postings"].items():
            index._postings[name] = {
                term: {int(doc): pos for doc, pos in docs.items()} for term, docs in terms.items()
            }
        logger.info(f"Opened index {index_file} with {index.num_docs} document(s)")
        return index

    # --- IndexSearcher ---

    @property
    def num_docs(self) -> int:
        return len(self._doc_ids)

    def stored(self, doc_id: str) -> Optional[Dict[str, str]]:
        try:
            return self._stored[self._doc_ids.index(doc_id)]
        except ValueError:
            return None

    def doc_freq(self, field_name: str, term: str) -> int:
        return len(self._postings.get(field_name, {}).get(term, {}))

    def search(self, query, limit: int) -> List[ScoredDocument]:
        scores = self._score(query)
        ranked = sorted(scores.items(), key=lambda item: (-item[1], self._doc_ids[item[0]]))
        return [ScoredDocument(doc_id=self._doc_ids[doc], score=score) for doc, score in ranked[:limit]]

    def _idf(self, field_name: str, term: str) -> float:
        df = self.doc_freq(field_name, term)
        return math.log(1 + self.num_docs / df) if df else 0.0

    def _score(self, query) -> Dict[int, float]:
        if isinstance(query, TermQuery):
            return self._score_term(query)
        if isinstance(query, MultiPhraseQuery):
            return self._score_phrase(query)
        if isinstance(query, BooleanQuery):
            total: Dict[int, float] = defaultdict(float)
            for clause in query.clauses:
                for doc, score in self._score(clause).items():
                    total[doc] += score * query.boost
            return total
        raise TypeError(f"Unsupported query type: {type(query).__name__}")

    def _score_term(self, query: TermQuery) -> Dict[int, float]:
        docs = self._postings.get(query.field, {}).get(query.term, {})
        idf = self._idf(query.field, query.term)
        return {doc: (1 + math.log(len(positions))) * idf for doc, positions in docs.items()}

    def _score_phrase(self, query: MultiPhraseQuery) -> Dict[int, float]:
        if not query.slots:
            return {}
        field_postings = self._postings.get(query.field, {})

        # Для каждого слота: документ -> множество позиций любого из его термов
        slot_positions = []
        for slot in query.slots:
            merged: Dict[int, set] = defaultdict(set)
            for term in slot:
                for doc, positions in field_postings.get(term, {}).items():
                    merged[doc].update(positions)
            slot_positions.append(merged)

        candidates = set(slot_positions[0])
        for merged in slot_positions[1:]:
            candidates &= set(merged)

        weight = sum(max(self._idf(query.field, t) for t in slot) for slot in query.slots)
        scores = {}
        for doc in candidates:
            freq = sum(
                1 for start in slot_positions[0][doc]
                if all(start + i in slot_positions[i][doc] for i in range(1, len(query.slots)))
            )
            if freq:
                scores[doc] = (1 + math.log(freq)) * weight
        return scores

    def close(self) -> None:
        logger.debug(f"Closing index with {self.num_docs} document(s)")
