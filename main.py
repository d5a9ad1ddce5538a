import sys
import logging
import argparse
from pathlib import Path

from argsearch.analysis import Analyzer, LexiconRegistry, SynchronizedTagger
from argsearch.core.exceptions import ConfigurationError
from argsearch.config import DEFAULT_CONFIG_PATH, EngineSettings, FilterStrategy, RunSettings, load_config
from argsearch.evaluation.metrics import display_results, evaluate_run
from argsearch.evaluation.qrels import load_qrels, load_run
from argsearch.index.indexer import DirectoryIndexer
from argsearch.index.memory_index import MemoryIndex
from argsearch.ingress import ResourceFetcher
from argsearch.search.searcher import TaskSearcher

# Настройка логирования
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def build_engines(engines: EngineSettings):
    """Внешние модели создаются один раз и делятся между всеми прогонами."""
    tokenizer_factory = None
    pos_tagger = None
    entity_taggers = []
    nlp = None

    if engines.tokenizer == "spacy" or engines.pos_tagging or engines.entity_engine == "spacy":
        from argsearch.engines.spacy_engine import load_spacy
        if not engines.spacy_model:
            raise ConfigurationError("engines.spacy_model is required for spaCy components")
        nlp = load_spacy(engines.spacy_model)

    if engines.tokenizer == "spacy":
        from argsearch.engines.spacy_engine import spacy_tokenizer_factory
        tokenizer_factory = spacy_tokenizer_factory(nlp)

    if engines.pos_tagging:
        from argsearch.engines.spacy_engine import SpacyPosTagger, model_lock
        pos_tagger = SynchronizedTagger(SpacyPosTagger(nlp), lock=model_lock(nlp))

    if engines.entity_engine == "spacy":
        from argsearch.engines.spacy_engine import SpacyEntityTagger, model_lock
        entity_taggers.append(SynchronizedTagger(SpacyEntityTagger(nlp, engines.entity_labels), lock=model_lock(nlp)))
    elif engines.entity_engine == "natasha":
        from argsearch.engines.natasha_engine import NatashaEntityTagger
        entity_taggers.append(SynchronizedTagger(NatashaEntityTagger(engines.entity_labels)))

    return tokenizer_factory, pos_tagger, entity_taggers


def execute_run(run: RunSettings, registry: LexiconRegistry, engines) -> None:
    tokenizer_factory, pos_tagger, entity_taggers = engines
    logger.info(f">>> Run {run.run_id}")

    analyzer = Analyzer(run.analyzer, registry, tokenizer_factory, pos_tagger, entity_taggers)

    # --- Step 1: Indexing ---
    writer = MemoryIndex(run.index_path)
    DirectoryIndexer(
        analyzer, writer, run.docs_path,
        extension=run.extension,
        expected_docs=run.expected_docs,
        parser=run.parser,
        num_workers=run.num_workers,
        queue_factor=run.queue_factor
    ).index()

    # --- Step 2: Searching ---
    # В индексе лежат и исходные, и '<type>'-токены; запросы разделяем
    typed_analyzer = None
    if run.analyzer.type_synonyms:
        typed_analyzer = analyzer.derive(filter_strategy=FilterStrategy.TYPED_ONLY)
        analyzer = analyzer.derive(filter_strategy=FilterStrategy.ORIGINAL_ONLY)

    run_file = TaskSearcher(
        analyzer, MemoryIndex.open(run.index_path), run.topics_path,
        run_id=run.run_id,
        run_path=run.runs_path,
        expected_topics=run.expected_topics,
        max_docs_retrieved=run.max_docs_retrieved,
        typed_analyzer=typed_analyzer,
        phrase_size=run.phrase_size,
        num_workers=run.num_workers,
        queue_factor=run.queue_factor
    ).search()

    # --- Step 3: Evaluation ---
    if run.qrels_path:
        report = evaluate_run(load_run(run_file), load_qrels(run.qrels_path))
        report_path = Path(run.runs_path) / f"{run.run_id}.eval.csv"
        report.to_csv(report_path, index=False)
        display_results(report, run.run_id)
        logger.info(f"Evaluation saved to {report_path}")


def main():
    arg_parser = argparse.ArgumentParser(description="Argument retrieval: index, search, evaluate")
    arg_parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="YAML pipeline config")
    arg_parser.add_argument("--run", action="append", help="Run id to execute (default: all)")
    args = arg_parser.parse_args()

    config = load_config(args.config)

    logger.info(">>> Phase 1: Ingress (Downloading resources)")
    ResourceFetcher(config.resources_dir).run(config.resources)

    registry = LexiconRegistry()
    engines = build_engines(config.engines)

    runs = [r for r in config.runs if not args.run or r.run_id in args.run]
    if not runs:
        logger.error("No runs selected.")
        sys.exit(1)

    for run in runs:
        try:
            execute_run(run, registry, engines)
        except Exception:
            logger.exception(f"Run {run.run_id} failed")
            raise

    logger.info(f"{len(runs)} run(s) completed.")


if __name__ == "__main__":
    main()
