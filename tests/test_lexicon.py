import tempfile
import threading
import unittest
from pathlib import Path

from argsearch.analysis.lexicon import (
    LexiconRegistry,
    load_categories,
    load_synonyms,
    load_word_list,
    parse_category_line,
    parse_wordnet_synonyms,
)
from argsearch.core.exceptions import ResourceError

WN_SAMPLE = """\
s(102121620,1,'cat',n,1,7).
s(102121620,2,'true cat',n,1,0).
s(102121620,3,'feline',n,1,0).
s(100001740,1,'entity',n,1,11).
s(104399382,1,'o''clock',n,1,0).
s(104399382,2,'hour',n,1,0).
"""


class TestWordNetSynonyms(unittest.TestCase):
    def test_synset_members_are_synonyms(self):
        synonyms = parse_wordnet_synonyms(WN_SAMPLE.splitlines())

        self.assertEqual(synonyms.lookup("cat"), ("cat", "feline"))
        self.assertEqual(synonyms.lookup("feline"), ("cat", "feline"))
        # Многословные записи - ключи, но не синонимы
        self.assertEqual(synonyms.lookup("true cat"), ("cat", "feline"))
        self.assertEqual(synonyms.lookup("entity"), ("entity",))
        self.assertEqual(synonyms.lookup("dog"), ())

    def test_escaped_quote(self):
        synonyms = parse_wordnet_synonyms(WN_SAMPLE.splitlines())
        self.assertEqual(synonyms.lookup("hour"), ("o'clock", "hour"))

    def test_malformed_line(self):
        with self.assertRaises(ValueError):
            parse_wordnet_synonyms(["g(100001740,'that which is perceived')."])

    def test_map_is_read_only(self):
        synonyms = parse_wordnet_synonyms(WN_SAMPLE.splitlines())
        with self.assertRaises(TypeError):
            synonyms._entries["dog"] = ("hound",)


class TestResourceFiles(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_load_synonyms_file(self):
        path = self.root / "wn_s.pl"
        path.write_text(WN_SAMPLE, encoding="utf-8")
        self.assertEqual(len(load_synonyms(path)), 6)

    def test_missing_resources_name_the_file(self):
        with self.assertRaises(ResourceError) as ctx:
            load_synonyms(self.root / "missing.pl")
        self.assertIn("missing.pl", str(ctx.exception))

        with self.assertRaises(ResourceError):
            load_categories(self.root / "no-such-dir")
        with self.assertRaises(ResourceError):
            load_word_list(self.root / "stop.txt")

    def test_malformed_synonyms_become_resource_error(self):
        path = self.root / "bad.pl"
        path.write_text("garbage\n", encoding="utf-8")
        with self.assertRaises(ResourceError):
            load_synonyms(path)

    def test_categories_directory(self):
        lexnames = self.root / "lexnames"
        lexnames.mkdir()
        (lexnames / "noun.animal").write_text("{ cat, feline,@ carnivore,@ (a small animal) }\n", encoding="utf-8")
        (lexnames / "noun.location").write_text("{ Rome, city,@ }\n", encoding="utf-8")
        (lexnames / "README").write_text("no category here\n", encoding="utf-8")

        categories = load_categories(lexnames)
        self.assertEqual(categories.lookup("cat"), "animal")
        self.assertEqual(categories.lookup("feline"), "animal")
        self.assertEqual(categories.lookup("Rome"), "location")
        self.assertIsNone(categories.lookup("carnivore"))
        self.assertIsNone(categories.lookup("no"))

    def test_category_line(self):
        self.assertEqual(parse_category_line("{ cat, feline,@ carnivore }"), ["cat", "feline"])
        self.assertEqual(parse_category_line("plain words_here 42"), ["plain", "words", "here", "42"])

    def test_word_list(self):
        path = self.root / "stop.txt"
        path.write_text("# English stop words\nthe\n\n  a  \non\n", encoding="utf-8")
        self.assertEqual(load_word_list(path), frozenset({"the", "a", "on"}))


class TestLexiconRegistry(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "stop.txt"
        self.path.write_text("the\n", encoding="utf-8")

    def tearDown(self):
        self.tmp.cleanup()

    def test_concurrent_first_use_builds_once(self):
        registry = LexiconRegistry()
        builds = []
        start = threading.Barrier(8)

        def builder(path):
            builds.append(path)
            threading.Event().wait(0.01)
            return frozenset({"the"})

        results = []

        def worker():
            start.wait()
            results.append(registry.get_or_build("words", self.path, builder))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(builds), 1)
        self.assertEqual(len(results), 8)
        self.assertTrue(all(r is results[0] for r in results))

    def test_reuse_and_opt_in_rebuild(self):
        registry = LexiconRegistry()
        first = registry.word_list(self.path)
        self.assertIs(registry.word_list(self.path), first)

        rebuilt = registry.word_list(self.path, reuse=False)
        self.assertIsNot(rebuilt, first)
        self.assertEqual(rebuilt, first)
        # Пересборка не трогает общий кэш
        self.assertIs(registry.word_list(self.path), first)
        self.assertEqual(len(registry), 1)


if __name__ == '__main__':
    unittest.main()
