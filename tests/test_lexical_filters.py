import unittest

from argsearch.analysis.lexical import LowerCaseFilter, PorterStemFilter, StopFilter
from argsearch.analysis.tokenizer import CannedTokenizer
from argsearch.core.data_structures import Token


class TestLexicalFilters(unittest.TestCase):
    def test_lowercase(self):
        stream = LowerCaseFilter(CannedTokenizer.from_terms(["Should", "FELONS", "vote"]))
        self.assertEqual([t.text for t in stream], ["should", "felons", "vote"])

    def test_stop_filter_leaves_no_position_holes(self):
        stream = StopFilter(CannedTokenizer.from_terms(["the", "cat", "on", "the", "mat"]), {"the", "on"})
        self.assertEqual([(t.text, t.position_increment) for t in stream], [("cat", 1), ("mat", 1)])

    def test_stop_filter_keeps_keywords(self):
        source = CannedTokenizer([Token(text="the", is_keyword=True, end_offset=3)])
        self.assertEqual([t.text for t in StopFilter(source, {"the"})], ["the"])

    def test_porter_stem(self):
        stream = PorterStemFilter(CannedTokenizer.from_terms(["drugs", "accepted", "sports"]))
        self.assertEqual([t.text for t in stream], ["drug", "accept", "sport"])

    def test_stem_skips_keywords_and_typed_terms(self):
        source = CannedTokenizer([
            Token(text="United States", is_keyword=True, end_offset=13),
            Token(text="<NNS>drugs", position_increment=0, start_offset=14, end_offset=19),
        ])
        self.assertEqual([t.text for t in PorterStemFilter(source)], ["United States", "<NNS>drugs"])


if __name__ == '__main__':
    unittest.main()
