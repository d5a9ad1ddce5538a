import tempfile
import unittest
from pathlib import Path

from argsearch.analysis import Analyzer, LexiconRegistry, SynchronizedTagger
from argsearch.analysis.tokenizer import PUNCT, CannedTokenizer
from argsearch.config import AnalyzerSettings, ExpansionStrategy, FilterStrategy
from argsearch.core.data_structures import Span
from argsearch.core.exceptions import ConfigurationError, ResourceError
from argsearch.core.interfaces import EntityTagger
from argsearch.search.queries import PhraseQueryGenerator


class CityTagger(EntityTagger):
    def find_spans(self, terms):
        return [Span(start=i, end=i + 2, label="GPE")
                for i in range(len(terms) - 1) if terms[i:i + 2] == ["New", "York"]]


class TestAnalyzer(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        root = Path(self.tmp.name)
        self.stop_path = root / "stop.txt"
        self.stop_path.write_text("the\nbe\n", encoding="utf-8")
        self.wn_path = root / "wn_s.pl"
        self.wn_path.write_text(
            "s(102121620,1,'cat',n,1,7).\ns(102121620,2,'feline',n,1,0).\n", encoding="utf-8"
        )
        self.registry = LexiconRegistry()

    def tearDown(self):
        self.tmp.cleanup()

    def _settings(self, **kwargs):
        base = dict(stop_words_path=str(self.stop_path), stem=False)
        base.update(kwargs)
        return AnalyzerSettings(**base)

    def test_cat_feline_scenario(self):
        settings = self._settings(expansion=ExpansionStrategy.SYNONYMS, synonyms_path=str(self.wn_path))
        tokens = Analyzer(settings, self.registry).analyze("the cat sat")

        self.assertEqual([(t.text, t.position_increment) for t in tokens],
                         [("cat", 1), ("feline", 0), ("sat", 1)])

    def test_default_chain(self):
        analyzer = Analyzer(self._settings(stem=True), self.registry)
        terms = analyzer.terms(CannedTokenizer.from_terms(
            ["Should", "performance-enhancing", "drugs", "be", "accepted", "in", "sports", "?"]
        ))
        # "?" из CannedTokenizer имеет тип PUNCT и удаляется по умолчанию
        self.assertEqual(terms, ["should", "perform", "enhanc", "drug", "accept", "in", "sport"])

    def test_default_settings_drop_punctuation(self):
        analyzer = Analyzer(AnalyzerSettings(), self.registry)
        self.assertEqual(analyzer.terms("Should felons vote? Yes, they should."),
                         ["should", "felon", "vote", "ye", "they", "should"])
        self.assertIn(PUNCT, AnalyzerSettings().remove_types)

        query = PhraseQueryGenerator.create(analyzer, "body", "Should felons vote?", 2)
        self.assertEqual([c.slots for c in query.clauses],
                         [(("should",), ("felon",)), (("felon",), ("vote",))])

    def test_contraction_replacement(self):
        analyzer = Analyzer(self._settings(split_delimiter=None), self.registry)
        self.assertEqual(analyzer.terms(CannedTokenizer.from_terms(["It", "'s"])), ["it", "is"])

    def test_typed_streams(self):
        settings = self._settings(type_synonyms=True)
        analyzer = Analyzer(settings, self.registry)

        both = [(t.text, t.position_increment) for t in analyzer.analyze("cat sat")]
        self.assertEqual(both, [("cat", 1), ("<WORD>cat", 0), ("sat", 1), ("<WORD>sat", 0)])

        original = analyzer.derive(filter_strategy=FilterStrategy.ORIGINAL_ONLY)
        self.assertEqual(original.terms("cat sat"), ["cat", "sat"])

        typed = analyzer.derive(filter_strategy=FilterStrategy.TYPED_ONLY)
        self.assertEqual([(t.text, t.position_increment) for t in typed.analyze("cat sat")],
                         [("<WORD>cat", 1), ("<WORD>sat", 1)])

    def test_entities_survive_lexical_filters(self):
        analyzer = Analyzer(self._settings(stem=True), self.registry,
                            entity_taggers=[SynchronizedTagger(CityTagger())])
        tokens = analyzer.analyze("The players of New York")

        merged = [t for t in tokens if t.type == "GPE"]
        self.assertEqual(len(merged), 1)
        # lowercase применяется ко всем токенам, стемминг ключевые слова не трогает
        self.assertEqual(merged[0].text, "new york")

    def test_prebuilt_stream_input(self):
        analyzer = Analyzer(self._settings(), self.registry)
        self.assertEqual(analyzer.terms(CannedTokenizer.from_terms(["The", "Cat"])), ["cat"])

    def test_reset_reproduces_output(self):
        settings = self._settings(expansion=ExpansionStrategy.SYNONYMS, synonyms_path=str(self.wn_path))
        stream = Analyzer(settings, self.registry).token_stream("The cat sat. The cat slept.")

        stream.reset()
        first = [t.model_dump() for t in stream]
        stream.reset()
        second = [t.model_dump() for t in stream]
        self.assertEqual(first, second)

    def test_lexicons_are_shared_between_analyzers(self):
        settings = self._settings(expansion=ExpansionStrategy.SYNONYMS, synonyms_path=str(self.wn_path))
        Analyzer(settings, self.registry).analyze("cat")
        Analyzer(settings, self.registry).analyze("cat")
        # stop list + synonyms
        self.assertEqual(len(self.registry), 2)

    def test_missing_resource_fails_at_first_use(self):
        analyzer = Analyzer(self._settings(stop_words_path=str(Path(self.tmp.name) / "nope.txt")), self.registry)
        with self.assertRaises(ResourceError):
            analyzer.analyze("cat")

    def test_invalid_configuration(self):
        with self.assertRaises(ValueError):
            AnalyzerSettings(expansion=ExpansionStrategy.SYNONYMS)
        with self.assertRaises(ConfigurationError):
            Analyzer(self._settings(), self.registry, pos_tagger=CityTagger())


if __name__ == '__main__':
    unittest.main()
