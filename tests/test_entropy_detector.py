import math
import unittest
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))

from data_classes import LineContext, Revision, RevisionKind, Severity
from entropy_detector import ENTROPY_FINDING_TYPE, EntropyDetector, shannon_entropy
from vocabulary_filter import VocabularyFilter
from fixtures import RANDOM_TOKEN


class TestShannonEntropy(unittest.TestCase):
    def test_known_values(self):
        self.assertEqual(shannon_entropy(""), 0.0)
        self.assertEqual(shannon_entropy("a" * 24), 0.0)
        self.assertAlmostEqual(shannon_entropy("aabb"), 1.0)
        self.assertAlmostEqual(shannon_entropy("abcd"), 2.0)

    def test_distinct_symbols(self):
        self.assertAlmostEqual(shannon_entropy(RANDOM_TOKEN), math.log2(62))


class TestVocabularyFilter(unittest.TestCase):
    def test_case_insensitive_substring(self):
        vocabulary = VocabularyFilter()
        self.assertTrue(vocabulary.is_common("HTTPS://EXAMPLE"))
        self.assertTrue(vocabulary.is_common("isNullOrEmpty"))
        self.assertFalse(vocabulary.is_common(RANDOM_TOKEN))

    def test_extended_leaves_original(self):
        vocabulary = VocabularyFilter(["foo"])
        extended = vocabulary.extended(["Bar"])
        self.assertEqual(extended.entries, ("foo", "bar"))
        self.assertEqual(vocabulary.entries, ("foo",))


class TestEntropyDetector(unittest.TestCase):
    def setUp(self):
        self.revision = Revision(id="f" * 40, kind=RevisionKind.STASH)
        self.context = LineContext(file_path=".env", revision=self.revision, line_number=2)

    def test_repeated_character_is_not_reported(self):
        detector = EntropyDetector()
        self.assertEqual(detector.detect("x = " + "a" * 24, self.context), [])

    def test_random_token_is_reported(self):
        detector = EntropyDetector()
        findings = detector.detect(f"SECRET = {RANDOM_TOKEN}", self.context)

        self.assertEqual(len(findings), 1)
        finding = findings[0]
        self.assertEqual(finding.finding_type, ENTROPY_FINDING_TYPE)
        self.assertEqual(finding.matched_text, RANDOM_TOKEN)
        self.assertEqual(finding.severity, Severity.MEDIUM)
        self.assertAlmostEqual(finding.confidence, 0.9)
        self.assertEqual(finding.revision_kind, RevisionKind.STASH)
        self.assertEqual(finding.line_number, 2)

    def test_confidence_scales_below_cap(self):
        token = RANDOM_TOKEN[:32]
        detector = EntropyDetector(threshold=4.0)
        findings = detector.detect(token, self.context)

        self.assertEqual(len(findings), 1)
        self.assertAlmostEqual(findings[0].confidence, 5.0 / 6.0)

    def test_thirty_two_distinct_symbols_stay_below_default_threshold(self):
        self.assertEqual(EntropyDetector().detect(RANDOM_TOKEN[:32], self.context), [])

    def test_url_token_excluded_by_vocabulary(self):
        token = "https://" + RANDOM_TOKEN[:22]
        self.assertEqual(len(token), 30)

        permissive = EntropyDetector(VocabularyFilter([]), threshold=0.0)
        self.assertEqual(len(permissive.detect(token, self.context)), 1)

        filtered = EntropyDetector(threshold=0.0)
        self.assertEqual(filtered.detect(token, self.context), [])

    def test_minimum_length(self):
        detector = EntropyDetector(VocabularyFilter([]), threshold=0.0)
        self.assertEqual(detector.detect(RANDOM_TOKEN[:23], self.context), [])
        self.assertEqual(len(detector.detect(RANDOM_TOKEN[:24], self.context)), 1)

    def test_configurable_min_length(self):
        detector = EntropyDetector(VocabularyFilter([]), threshold=0.0, min_length=4)
        findings = detector.detect("abcd ef", self.context)
        self.assertEqual([f.matched_text for f in findings], ["abcd"])

    def test_tokens_split_on_any_whitespace(self):
        detector = EntropyDetector()
        line = f"\t{RANDOM_TOKEN}\t{RANDOM_TOKEN[::-1]}  "
        findings = detector.detect(line, self.context)
        self.assertEqual(
            [f.matched_text for f in findings], [RANDOM_TOKEN, RANDOM_TOKEN[::-1]]
        )


if __name__ == "__main__":
    unittest.main()
