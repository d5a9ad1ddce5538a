"""
Печать потока токенов анализатора для одного текста.

    python scripts/dump_stream.py "Should performance-enhancing drugs be accepted in sports?"
    python scripts/dump_stream.py --synonyms data/resources/wn_s.pl --type-synonyms --conllu "The cat sat"
"""
import sys
import logging
import argparse
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from argsearch.analysis import Analyzer
from argsearch.analysis.inspect import consume_token_stream, to_conllu
from argsearch.config import AnalyzerSettings, ExpansionStrategy, FilterStrategy

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


def main():
    parser = argparse.ArgumentParser(description="Show every token of an analyzed text")
    parser.add_argument("text")
    parser.add_argument("--stop-words", help="stop list file")
    parser.add_argument("--synonyms", help="WordNet prolog wn_s.pl")
    parser.add_argument("--categories", help="directory of lexicographer files")
    parser.add_argument("--no-stem", action="store_true")
    parser.add_argument("--type-synonyms", action="store_true")
    parser.add_argument("--filter", choices=[s.value for s in FilterStrategy], default=FilterStrategy.NONE.value)
    parser.add_argument("--conllu", action="store_true", help="also print CoNLL-U")
    args = parser.parse_args()

    expansion = ExpansionStrategy.NONE
    if args.synonyms:
        expansion = ExpansionStrategy.SYNONYMS
    elif args.categories:
        expansion = ExpansionStrategy.CATEGORIES

    settings = AnalyzerSettings(
        stop_words_path=args.stop_words,
        expansion=expansion,
        synonyms_path=args.synonyms,
        categories_path=args.categories,
        stem=not args.no_stem,
        type_synonyms=args.type_synonyms,
        filter_strategy=FilterStrategy(args.filter),
    )
    analyzer = Analyzer(settings)

    tokens = consume_token_stream(analyzer.token_stream(args.text), title=args.text)
    if args.conllu:
        print(to_conllu(tokens, {"text": args.text}))


if __name__ == "__main__":
    main()
