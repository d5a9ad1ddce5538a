import logging
import time
from pathlib import Path
from typing import List, Optional, Tuple, Union

from argsearch.core.data_structures import FIELDS, ScoredDocument, Topic
from argsearch.core.exceptions import ConfigurationError
from argsearch.core.interfaces import IndexSearcher
from argsearch.work_pipeline import BoundedWorkPipeline
from .queries import BooleanQuery, PhraseQueryGenerator, TermQueryGenerator
from .topics import load_topics

logger = logging.getLogger(__name__)


def format_run_lines(query_id: Union[int, str], docs: List[ScoredDocument], run_id: str) -> List[str]:
    """queryId Q0 docId rank score runId (ранг с нуля)."""
    return [f"{query_id} Q0 {d.doc_id} {rank} {d.score:.6f} {run_id}\n" for rank, d in enumerate(docs)]


class TaskSearcher:
    """
    Поиск по темам с записью run-файла.

    Итоговый запрос темы = SHOULD из трех частей:
    1. normal: мешок термов по body и title;
    2. typed: мешок '<type>term' по body и title (если задан typed_analyzer);
    3. phrase: фразы из phrase_size подряд идущих позиций по body и title.
    Запросы исполняются в BoundedWorkPipeline, результаты пишутся в порядке тем.
    """

    def __init__(self, analyzer, searcher: IndexSearcher, topics_path: Union[str, Path],
                 run_id: str, run_path: Union[str, Path], expected_topics: int = -1,
                 max_docs_retrieved: int = 1000, typed_analyzer=None, phrase_size: int = 2,
                 num_workers: int = 4, queue_factor: float = 2.0):
        if analyzer is None:
            raise ConfigurationError("Analyzer cannot be None.")
        if searcher is None:
            raise ConfigurationError("Index searcher cannot be None.")
        if not run_id:
            raise ConfigurationError("Run identifier cannot be empty.")
        if not run_path:
            raise ConfigurationError("Run path cannot be empty.")
        if max_docs_retrieved <= 0:
            raise ConfigurationError("The maximum number of documents to be retrieved must be positive.")
        if phrase_size <= 0:
            raise ConfigurationError("Phrase size must be positive.")

        self.run_dir = Path(run_path)
        self.run_dir.mkdir(parents=True, exist_ok=True)
        if not self.run_dir.is_dir():
            raise ConfigurationError(f"{self.run_dir.resolve()} expected to be a directory where to write the run.")

        self.analyzer = analyzer
        self.typed_analyzer = typed_analyzer
        self.searcher = searcher
        self.topics: List[Topic] = load_topics(topics_path)
        self.run_id = run_id
        self.max_docs_retrieved = max_docs_retrieved
        self.phrase_size = phrase_size
        self.num_workers = num_workers
        self.queue_factor = queue_factor
        self.elapsed = 0.0

        if expected_topics > 0 and len(self.topics) != expected_topics:
            logger.warning(f"Expected to search for {expected_topics} topics; {len(self.topics)} topics found instead.")

    @property
    def run_file(self) -> Path:
        return self.run_dir / f"{self.run_id}.txt"

    def build_query(self, text: str) -> BooleanQuery:
        parts = []

        # 1. Обычный запрос
        parts.append(BooleanQuery((
            TermQueryGenerator.create(self.analyzer, FIELDS.BODY, text),
            TermQueryGenerator.create(self.analyzer, FIELDS.TITLE, text),
        )))

        # 2. Типизированный запрос
        if self.typed_analyzer is not None:
            parts.append(BooleanQuery((
                TermQueryGenerator.create(self.typed_analyzer, FIELDS.BODY, text),
                TermQueryGenerator.create(self.typed_analyzer, FIELDS.TITLE, text),
            )))

        # 3. Фразовый запрос
        parts.append(BooleanQuery((
            PhraseQueryGenerator.create(self.analyzer, FIELDS.BODY, text, self.phrase_size),
            PhraseQueryGenerator.create(self.analyzer, FIELDS.TITLE, text, self.phrase_size),
        )))

        return BooleanQuery(tuple(parts))

    def _search_topic(self, topic: Topic) -> Tuple[Topic, List[ScoredDocument]]:
        query = self.build_query(topic.title)
        return topic, self.searcher.search(query, self.max_docs_retrieved)

    def search(self) -> Path:
        logger.info("#### Start searching ####")
        start = time.time()

        try:
            with open(self.run_file, 'w', encoding='utf-8') as run:

                def write_result(result: Tuple[Topic, List[ScoredDocument]]) -> None:
                    topic, docs = result
                    run.writelines(format_run_lines(topic.number, docs, self.run_id))
                    logger.info(f"Topic {topic.number}: {len(docs)} document(s) retrieved")

                with BoundedWorkPipeline(self.num_workers, self.queue_factor,
                                         on_result=write_result, name="searcher") as pipeline:
                    for topic in self.topics:
                        logger.debug(f"Searching for topic {topic.number}.")
                        pipeline.submit(self._search_topic, topic)
                    pipeline.join()
        finally:
            self.searcher.close()

        self.elapsed = time.time() - start
        logger.info(f"{len(self.topics)} topic(s) searched in {self.elapsed:.1f} seconds.")
        logger.info("#### Searching complete ####")
        return self.run_file
