import logging
from pathlib import Path
from typing import Dict, List, Tuple, Union

from argsearch.core.exceptions import ResourceError

logger = logging.getLogger(__name__)

# topic -> doc_id -> релевантность
Qrels = Dict[int, Dict[str, float]]
# topic -> [(doc_id, score)] в порядке ранга
Run = Dict[int, List[Tuple[str, float]]]


def _read_lines(path: Path) -> List[List[str]]:
    if not path.is_file():
        raise ResourceError(str(path), "file not found")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return [line.split() for line in f if line.strip()]
    except OSError as e:
        raise ResourceError(str(path), str(e)) from e


def load_qrels(path: Union[str, Path]) -> Qrels:
    """Строки вида 'topic iteration doc_id relevance' (TREC qrels)."""
    path = Path(path)
    qrels: Qrels = {}
    for line_no, parts in enumerate(_read_lines(path), 1):
        if len(parts) != 4:
            raise ResourceError(str(path), f"line {line_no}: expected 4 columns, got {len(parts)}")
        topic, _, doc_id, relevance = parts
        try:
            qrels.setdefault(int(topic), {})[doc_id] = float(relevance)
        except ValueError as e:
            raise ResourceError(str(path), f"line {line_no}: {e}") from e

    logger.info(f"Loaded judgments for {len(qrels)} topic(s) from {path.name}")
    return qrels


def load_run(path: Union[str, Path]) -> Run:
    """Строки run-файла 'topic Q0 doc_id rank score run_id'; порядок - по рангу."""
    path = Path(path)
    ranked: Dict[int, List[Tuple[int, str, float]]] = {}
    for line_no, parts in enumerate(_read_lines(path), 1):
        if len(parts) != 6:
            raise ResourceError(str(path), f"line {line_no}: expected 6 columns, got {len(parts)}")
        topic, _, doc_id, rank, score, _ = parts
        try:
            ranked.setdefault(int(topic), []).append((int(rank), doc_id, float(score)))
        except ValueError as e:
            raise ResourceError(str(path), f"line {line_no}: {e}") from e

    return {
        topic: [(doc_id, score) for _, doc_id, score in sorted(rows)]
        for topic, rows in ranked.items()
    }
