import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

import pandas as pd
from rich.console import Console
from rich.table import Table

from .qrels import Qrels, Run

logger = logging.getLogger(__name__)


@dataclass
class TopicResult:
    topic: int
    retrieved: int
    relevant: int
    precision: float
    average_precision: float
    ndcg: float


class RetrievalMetrics:
    """
    Метрики ранжирования по одной теме.
    Документ релевантен, если его оценка в qrels > threshold.
    """

    def __init__(self, k: int = 10, threshold: float = 0.0):
        self.k = k
        self.threshold = threshold

    def _is_relevant(self, judgments: Dict[str, float], doc_id: str) -> bool:
        return judgments.get(doc_id, 0.0) > self.threshold

    def precision_at_k(self, ranking: List[str], judgments: Dict[str, float], k: Optional[int] = None) -> float:
        k = k or self.k
        if k <= 0:
            return 0.0
        hits = sum(1 for doc_id in ranking[:k] if self._is_relevant(judgments, doc_id))
        return hits / k

    def average_precision(self, ranking: List[str], judgments: Dict[str, float]) -> float:
        total_relevant = sum(1 for rel in judgments.values() if rel > self.threshold)
        if total_relevant == 0:
            return 0.0

        hits = 0
        precision_sum = 0.0
        for i, doc_id in enumerate(ranking, 1):
            if self._is_relevant(judgments, doc_id):
                hits += 1
                precision_sum += hits / i
        return precision_sum / total_relevant

    def ndcg_at_k(self, ranking: List[str], judgments: Dict[str, float], k: Optional[int] = None) -> float:
        """nDCG с градуированной релевантностью (отрицательные оценки считаются нулем)."""
        k = k or self.k
        gains = [max(judgments.get(doc_id, 0.0), 0.0) for doc_id in ranking[:k]]
        dcg = sum(g / math.log2(i + 2) for i, g in enumerate(gains))

        ideal = sorted((max(r, 0.0) for r in judgments.values()), reverse=True)[:k]
        idcg = sum(g / math.log2(i + 2) for i, g in enumerate(ideal))
        return dcg / idcg if idcg > 0 else 0.0

    def evaluate_topic(self, topic: int, ranking: List[str], judgments: Dict[str, float]) -> TopicResult:
        return TopicResult(
            topic=topic,
            retrieved=len(ranking),
            relevant=sum(1 for rel in judgments.values() if rel > self.threshold),
            precision=self.precision_at_k(ranking, judgments),
            average_precision=self.average_precision(ranking, judgments),
            ndcg=self.ndcg_at_k(ranking, judgments),
        )


def evaluate_run(run: Run, qrels: Qrels, k: int = 10, threshold: float = 0.0) -> pd.DataFrame:
    """
    Таблица по темам (только темы с оценками) + строка 'mean'.
    Тема без результатов в run получает нулевые метрики.
    """
    metrics = RetrievalMetrics(k, threshold)
    rows = []
    for topic in sorted(qrels):
        ranking = [doc_id for doc_id, _ in run.get(topic, [])]
        result = metrics.evaluate_topic(topic, ranking, qrels[topic])
        rows.append({
            "topic": str(topic),
            "retrieved": result.retrieved,
            "relevant": result.relevant,
            f"P@{k}": result.precision,
            "AP": result.average_precision,
            f"nDCG@{k}": result.ndcg,
        })

    missing = set(run) - set(qrels)
    if missing:
        logger.warning(f"{len(missing)} topic(s) in the run have no judgments: {sorted(missing)[:10]}")

    df = pd.DataFrame(rows, columns=["topic", "retrieved", "relevant", f"P@{k}", "AP", f"nDCG@{k}"])
    if not df.empty:
        mean = df.drop(columns=["topic"]).mean(numeric_only=True).to_dict()
        mean["topic"] = "mean"
        df = pd.concat([df, pd.DataFrame([mean])], ignore_index=True)
    return df


def display_results(df: pd.DataFrame, run_id: str, console: Optional[Console] = None) -> None:
    """Печать средней строки отчета."""
    console = console or Console()
    table = Table(title=f"📈 {run_id}")
    table.add_column("Метрика", style="cyan")
    table.add_column("Значение", style="green")

    if df.empty:
        console.print(f"❌ No judged topics for {run_id}")
        return

    mean = df[df["topic"] == "mean"].iloc[0]
    for column in df.columns:
        if column in ("topic", "retrieved", "relevant"):
            continue
        table.add_row(column, f"{mean[column]:.4f}")

    console.print(table)
