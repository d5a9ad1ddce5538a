# argsearch/index/indexer.py
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Union

from tqdm import tqdm

from argsearch.core.data_structures import FIELDS, ParsedDocument, Token
from argsearch.core.exceptions import ConfigurationError
from argsearch.core.interfaces import IndexWriter
from argsearch.work_pipeline import BoundedWorkPipeline
from .parser import get_parser

logger = logging.getLogger(__name__)

MBYTE = 1024 * 1024
PROGRESS_EVERY = 10000


@dataclass
class IndexingStats:
    files: int = 0
    bytes: int = 0
    docs: int = 0
    duplicates: int = 0
    elapsed: float = 0.0


class DirectoryIndexer:
    """
    Индексация каталога документов в несколько потоков.

    Алгоритм:
    1. Обходим каталог (рекурсивно, в отсортированном порядке), берем файлы с нужным расширением.
    2. Каждый документ файла - отдельная задача BoundedWorkPipeline.
    3. Задача анализирует title/body собственной цепочкой фильтров и пишет документ в writer.
    4. Дубликаты id пропускаются. В конце commit() + close() writer'а (ровно один раз).
    """

    def __init__(self, analyzer, writer: IndexWriter, docs_path: Union[str, Path],
                 extension: str = ".json", expected_docs: int = -1, parser: str = "task1parser",
                 num_workers: int = 4, queue_factor: float = 2.0):
        if analyzer is None:
            raise ConfigurationError("Analyzer cannot be None.")
        if writer is None:
            raise ConfigurationError("Index writer cannot be None.")
        if not docs_path:
            raise ConfigurationError("Documents path cannot be empty.")

        self.docs_dir = Path(docs_path)
        if not self.docs_dir.is_dir():
            raise ConfigurationError(f"{self.docs_dir.resolve()} expected to be a directory of documents.")
        if not extension:
            raise ConfigurationError("File extension cannot be empty.")
        if num_workers < 1 or queue_factor <= 0:
            raise ConfigurationError(
                f"Invalid worker settings: num_workers={num_workers}, queue_factor={queue_factor}"
            )

        self.analyzer = analyzer
        self.writer = writer
        self.extension = extension
        self.expected_docs = expected_docs
        self.parser_factory = get_parser(parser)
        self.num_workers = num_workers
        self.queue_factor = queue_factor

        self.stats = IndexingStats()
        self._seen_ids = set()
        self._lock = threading.Lock()
        self._start = 0.0

    def _files(self) -> List[Path]:
        return sorted(p for p in self.docs_dir.rglob(f"*{self.extension}") if p.is_file())

    def _is_duplicate(self, doc: ParsedDocument) -> bool:
        # Вызывается в потоке обхода: сохраняется первый документ в порядке файлов
        if doc.id in self._seen_ids:
            self.stats.duplicates += 1
            logger.debug(f"Skipped duplicate document {doc.id}")
            return True
        self._seen_ids.add(doc.id)
        return False

    def _index_document(self, doc: ParsedDocument) -> None:
        fields: Dict[str, List[Token]] = {
            FIELDS.ID: [Token(text=doc.id, is_keyword=True)],
            FIELDS.TITLE: self.analyzer.analyze(doc.title) if doc.title else [],
            FIELDS.BODY: self.analyzer.analyze(doc.body),
            FIELDS.DOMAIN: [Token(text=doc.domain, is_keyword=True)] if doc.domain else [],
        }
        stored = {FIELDS.ID: doc.id, FIELDS.TITLE: doc.title, FIELDS.DOMAIN: doc.domain}
        self.writer.add_document(doc.id, fields, stored)

        with self._lock:
            self.stats.docs += 1
            if self.stats.docs % PROGRESS_EVERY == 0:
                self._log_progress()

    def _log_progress(self) -> None:
        logger.info(
            f"{self.stats.docs} document(s) ({self.stats.files} files, {self.stats.bytes // MBYTE} Mbytes) "
            f"indexed in {time.time() - self._start:.0f} seconds."
        )

    def index(self) -> IndexingStats:
        logger.info("#### Start indexing ####")
        self._start = time.time()

        files = self._files()
        if not files:
            logger.warning(f"No *{self.extension} files found in {self.docs_dir}")

        try:
            with BoundedWorkPipeline(self.num_workers, self.queue_factor, name="indexer") as pipeline:
                for file_path in tqdm(files, desc="Indexing", unit="file"):
                    self.stats.files += 1
                    self.stats.bytes += file_path.stat().st_size
                    for doc in self.parser_factory(file_path):
                        if self._is_duplicate(doc):
                            continue
                        pipeline.submit(self._index_document, doc)
                pipeline.join()

            self.writer.commit()
        finally:
            self.writer.close()

        self.stats.elapsed = time.time() - self._start

        if self.expected_docs > 0 and self.stats.docs != self.expected_docs:
            logger.warning(f"Expected to index {self.expected_docs} documents; {self.stats.docs} indexed instead.")

        self._log_progress()
        logger.info("#### Indexing complete ####")
        return self.stats
