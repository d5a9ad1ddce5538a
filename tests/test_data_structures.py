import unittest
from pydantic import ValidationError

from argsearch.core.data_structures import EOS_FLAG, ParsedDocument, Span, Token, Topic


class TestToken(unittest.TestCase):
    def test_defaults(self):
        token = Token(text="cat")
        self.assertEqual(token.position_increment, 1)
        self.assertEqual(token.position_length, 1)
        self.assertFalse(token.is_alternative)
        self.assertFalse(token.is_keyword)

    def test_invalid_values_rejected(self):
        with self.assertRaises(ValidationError):
            Token(text="cat", position_increment=-1)
        with self.assertRaises(ValidationError):
            Token(text="cat", position_length=0)
        # end < start
        with self.assertRaises(ValueError):
            Token(text="cat", start_offset=5, end_offset=2)

    def test_sentence_end_flag(self):
        self.assertTrue(Token(text=".", flags=EOS_FLAG).is_sentence_end)
        self.assertFalse(Token(text=".", flags=1).is_sentence_end)

    def test_clone_is_independent(self):
        token = Token(text="cat", type="NN", start_offset=4, end_offset=7)
        alt = token.clone(text="feline", position_increment=0)

        self.assertEqual(alt.text, "feline")
        self.assertTrue(alt.is_alternative)
        self.assertEqual((alt.type, alt.start_offset, alt.end_offset), ("NN", 4, 7))

        alt.text = "changed"
        self.assertEqual(token.text, "cat")


class TestModels(unittest.TestCase):
    def test_span_must_not_be_empty(self):
        self.assertEqual(Span(start=2, end=3, label="PERSON").label, "PERSON")
        with self.assertRaises(ValueError):
            Span(start=3, end=3, label="PERSON")

    def test_parsed_document_requires_id_and_body(self):
        doc = ParsedDocument(id="d1", body="text")
        self.assertEqual(doc.title, "")
        with self.assertRaises(ValidationError):
            ParsedDocument(id="", body="text")
        with self.assertRaises(ValidationError):
            ParsedDocument(id="d1", body="")

    def test_topic_number_is_coerced(self):
        self.assertEqual(Topic(number="7", title="Is it?").number, 7)


if __name__ == '__main__':
    unittest.main()
