import threading
import unittest
from typing import List

from argsearch.analysis.sentence import EntityMergeFilter, PosTagFilter, SynchronizedTagger
from argsearch.analysis.tokenizer import CannedTokenizer, RazdelTokenizer
from argsearch.core.data_structures import EOS_FLAG, Span
from argsearch.core.exceptions import ConfigurationError, StreamProtocolError
from argsearch.core.interfaces import EntityTagger, PosTagger


class DictEntityTagger(EntityTagger):
    """Фейковый NER: размечает заранее известные последовательности термов."""

    def __init__(self, entities):
        self.entities = entities  # {("New", "York"): "LOCATION"}
        self.calls: List[List[str]] = []
        self.resets = 0

    def find_spans(self, terms: List[str]) -> List[Span]:
        self.calls.append(list(terms))
        spans = []
        for words, label in self.entities.items():
            n = len(words)
            for i in range(len(terms) - n + 1):
                if tuple(terms[i:i + n]) == words:
                    spans.append(Span(start=i, end=i + n, label=label))
        return spans

    def reset(self) -> None:
        self.resets += 1


class FixedSpansTagger(EntityTagger):
    def __init__(self, spans):
        self.spans = spans

    def find_spans(self, terms):
        return self.spans


class UpperPosTagger(PosTagger):
    def __init__(self, shorten=False):
        self.shorten = shorten

    def tag(self, terms):
        tags = ["CAP" if t[:1].isupper() else "LOW" for t in terms]
        return tags[:-1] if self.shorten else tags


class TestEntityMergeFilter(unittest.TestCase):
    def setUp(self):
        self.tagger = DictEntityTagger({("Alice",): "PERSON", ("Rome",): "LOCATION", ("New", "York"): "LOCATION"})
        self.sync = SynchronizedTagger(self.tagger)

    def test_alice_in_rome(self):
        stream = EntityMergeFilter(RazdelTokenizer("I met Alice in Rome."), self.sync)
        tokens = list(stream)

        self.assertEqual([t.text for t in tokens], ["I", "met", "Alice", "in", "Rome", "."])
        self.assertEqual(tokens[2].type, "PERSON")
        self.assertEqual(tokens[4].type, "LOCATION")
        self.assertTrue(tokens[2].is_keyword and tokens[4].is_keyword)
        self.assertFalse(tokens[1].is_keyword)
        self.assertTrue(all(t.position_increment == 1 for t in tokens))

    def test_multi_token_merge(self):
        text = "I love New York so much"
        stream = EntityMergeFilter(CannedTokenizer.from_terms(text.split()), self.sync)
        tokens = list(stream)

        merged = tokens[2]
        self.assertEqual(merged.text, "New York")
        self.assertEqual(merged.type, "LOCATION")
        self.assertEqual(merged.position_length, 2)
        self.assertEqual((merged.start_offset, merged.end_offset), (7, 15))
        self.assertEqual(text[merged.start_offset:merged.end_offset], "New York")

    def test_position_lengths_are_preserved(self):
        """Сумма position_length после слияния = число исходных токенов предложения."""
        terms = "New York and Rome and Alice".split()
        tokens = list(EntityMergeFilter(CannedTokenizer.from_terms(terms), self.sync))

        self.assertEqual(sum(t.position_length for t in tokens), len(terms))
        self.assertEqual(len(tokens), len(terms) - 1)

    def test_flags_are_united(self):
        terms = ["in", "New", "York"]
        tokens = list(EntityMergeFilter(CannedTokenizer.from_terms(terms), self.sync))
        self.assertTrue(tokens[-1].flags & EOS_FLAG)

    def test_tagger_called_once_per_sentence(self):
        text = "I met Alice. We went to Rome. It was great."
        list(EntityMergeFilter(RazdelTokenizer(text), self.sync))

        self.assertEqual(len(self.tagger.calls), 3)
        self.assertEqual(self.tagger.calls[0], ["I", "met", "Alice", "."])

    def test_stream_without_eos_is_one_sentence(self):
        stream = CannedTokenizer.from_terms(["Alice", "and", "Rome"], sentence_end=False)
        tokens = list(EntityMergeFilter(stream, self.sync))

        self.assertEqual(len(self.tagger.calls), 1)
        self.assertEqual([t.type for t in tokens], ["PERSON", "WORD", "LOCATION"])

    def test_empty_input(self):
        stream = EntityMergeFilter(RazdelTokenizer(""), self.sync)
        self.assertIsNone(stream.next())
        self.assertIsNone(stream.next())
        self.assertEqual(self.tagger.calls, [])

    def test_reset_restarts_cleanly(self):
        stream = EntityMergeFilter(RazdelTokenizer("I met Alice. We went to Rome."), self.sync)
        resets_after_construction = self.tagger.resets
        self.assertEqual(resets_after_construction, 1)

        # Читаем частично, затем reset
        stream.next()
        stream.reset()
        self.assertEqual(self.tagger.resets, 2)

        first = [t.model_dump() for t in stream]
        stream.reset()
        second = [t.model_dump() for t in stream]
        self.assertEqual(first, second)
        self.assertEqual(first[0]["text"], "I")

    def test_upstream_reset_runs_outside_tagger_lock(self):
        """Сброс цепочки выше фильтра идет без lock теггера: другой поток в это время может им пользоваться."""
        sync = self.sync
        lock_was_free = []

        class LockCheckingSource(CannedTokenizer):
            def reset(self):
                super().reset()
                result = []

                def try_acquire():
                    acquired = sync.lock.acquire(blocking=False)
                    if acquired:
                        sync.lock.release()
                    result.append(acquired)

                other = threading.Thread(target=try_acquire)
                other.start()
                other.join()
                lock_was_free.extend(result)

        stream = EntityMergeFilter(LockCheckingSource.from_terms(["Alice"]), sync)
        resets_before = self.tagger.resets
        stream.reset()

        self.assertTrue(lock_was_free)
        self.assertTrue(all(lock_was_free))
        self.assertEqual(self.tagger.resets, resets_before + 1)
        self.assertEqual([t.text for t in stream], ["Alice"])

    def test_overlapping_spans_are_protocol_error(self):
        sync = SynchronizedTagger(FixedSpansTagger([Span(start=0, end=2, label="A"), Span(start=1, end=3, label="B")]))
        stream = EntityMergeFilter(CannedTokenizer.from_terms(["a", "b", "c"]), sync)
        with self.assertRaises(StreamProtocolError):
            stream.next()

    def test_out_of_range_span_is_protocol_error(self):
        sync = SynchronizedTagger(FixedSpansTagger([Span(start=1, end=5, label="A")]))
        stream = EntityMergeFilter(CannedTokenizer.from_terms(["a", "b"]), sync)
        with self.assertRaises(StreamProtocolError):
            list(stream)

    def test_requires_synchronized_tagger(self):
        with self.assertRaises(ConfigurationError):
            EntityMergeFilter(CannedTokenizer.from_terms(["a"]), self.tagger)
        with self.assertRaises(ConfigurationError):
            SynchronizedTagger(None)


class TestSynchronizedTagger(unittest.TestCase):
    def test_calls_are_serialized(self):
        """Теггер не потокобезопасен: одновременно внутри него не больше одного потока."""
        state = {"inside": 0, "max_inside": 0}
        guard = threading.Lock()

        class SlowTagger(EntityTagger):
            def find_spans(self, terms):
                with guard:
                    state["inside"] += 1
                    state["max_inside"] = max(state["max_inside"], state["inside"])
                threading.Event().wait(0.005)
                with guard:
                    state["inside"] -= 1
                return []

        sync = SynchronizedTagger(SlowTagger())

        def work():
            for _ in range(5):
                list(EntityMergeFilter(CannedTokenizer.from_terms(["a", "b"]), sync))

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(state["max_inside"], 1)


class TestPosTagFilter(unittest.TestCase):
    def test_tags_are_written_to_type(self):
        stream = PosTagFilter(RazdelTokenizer("Alice met Bob. Then Bob left."), SynchronizedTagger(UpperPosTagger()))
        tokens = list(stream)
        self.assertEqual([t.type for t in tokens[:4]], ["CAP", "LOW", "CAP", "LOW"])

    def test_tag_count_mismatch(self):
        stream = PosTagFilter(CannedTokenizer.from_terms(["a", "b"]), SynchronizedTagger(UpperPosTagger(shorten=True)))
        with self.assertRaises(StreamProtocolError):
            stream.next()


if __name__ == '__main__':
    unittest.main()
