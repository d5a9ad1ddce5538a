import tempfile
import threading
import unittest

from argsearch.core.data_structures import Token
from argsearch.core.exceptions import ResourceError
from argsearch.index.memory_index import MemoryIndex
from argsearch.search.queries import BooleanQuery, MultiPhraseQuery, TermQuery


def tokens(*items):
    """'cat' -> позиция +1, ('feline', 0) -> альтернатива."""
    result = []
    for item in items:
        text, inc = item if isinstance(item, tuple) else (item, 1)
        result.append(Token(text=text, position_increment=inc))
    return result


class TestMemoryIndex(unittest.TestCase):
    def setUp(self):
        self.index = MemoryIndex()
        self.index.add_document("d1", {"body": tokens("cat", ("feline", 0), "sat", "mat")}, {"id": "d1"})
        self.index.add_document("d2", {"body": tokens("dog", "sat", "cat")}, {"id": "d2"})
        self.index.add_document("d3", {"body": tokens("bird", "flew")}, {"id": "d3"})

    def test_term_query(self):
        hits = self.index.search(TermQuery("body", "cat"), 10)
        self.assertEqual({h.doc_id for h in hits}, {"d1", "d2"})
        self.assertEqual(self.index.doc_freq("body", "feline"), 1)
        self.assertEqual(self.index.search(TermQuery("body", "unicorn"), 10), [])

    def test_alternatives_share_position(self):
        # 'feline sat' совпадает как фраза: feline стоит на позиции 'cat'
        hits = self.index.search(MultiPhraseQuery("body", (("feline",), ("sat",))), 10)
        self.assertEqual([h.doc_id for h in hits], ["d1"])

    def test_phrase_requires_order(self):
        hits = self.index.search(MultiPhraseQuery("body", (("sat",), ("cat",))), 10)
        self.assertEqual([h.doc_id for h in hits], ["d2"])

        hits = self.index.search(MultiPhraseQuery("body", (("cat", "dog"), ("sat",))), 10)
        self.assertEqual({h.doc_id for h in hits}, {"d1", "d2"})

    def test_boolean_query_and_limit(self):
        query = BooleanQuery((TermQuery("body", "sat"), TermQuery("body", "bird")))
        hits = self.index.search(query, 2)
        self.assertEqual(len(hits), 2)
        self.assertGreaterEqual(hits[0].score, hits[1].score)

    def test_unsupported_query(self):
        with self.assertRaises(TypeError):
            self.index.search("cat", 10)

    def test_save_and_open(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.index.save(tmp)
            reopened = MemoryIndex.open(tmp)

            self.assertEqual(reopened.num_docs, 3)
            self.assertEqual(reopened.stored("d2"), {"id": "d2"})
            query = MultiPhraseQuery("body", (("feline",), ("sat",)))
            self.assertEqual(reopened.search(query, 10), self.index.search(query, 10))

    def test_open_missing_index(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ResourceError):
                MemoryIndex.open(tmp)

    def test_concurrent_writes(self):
        index = MemoryIndex()

        def write(start):
            for i in range(start, start + 50):
                index.add_document(f"doc-{i}", {"body": tokens("shared", f"t{i}")}, {})

        threads = [threading.Thread(target=write, args=(n * 50,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(index.num_docs, 200)
        self.assertEqual(index.doc_freq("body", "shared"), 200)


if __name__ == '__main__':
    unittest.main()
