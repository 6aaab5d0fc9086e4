import unittest

from shipmatch.matching.ocr import CONFUSION_MAP, expand_candidates, generate_ocr_variants


class TestGenerateOcrVariants(unittest.TestCase):
    def test_no_confusable_characters_yields_nothing(self):
        self.assertEqual(generate_ocr_variants("HANK"), [])
        self.assertEqual(generate_ocr_variants("xyw-7"), [])

    def test_single_substitution_per_position(self):
        variants = generate_ocr_variants("O0O1")
        self.assertEqual(
            variants,
            ["00O1", "Q0O1", "OOO1", "OQO1", "ODO1", "O001", "O0Q1", "O0OI", "O0Ol"],
        )

    def test_required_variants_present(self):
        variants = generate_ocr_variants("O0O1")
        for expected in ("00O1", "OQO1", "O0OI", "O0Ol"):
            self.assertIn(expected, variants)

    def test_lowercase_input_is_uppercased(self):
        self.assertEqual(generate_ocr_variants("ab"), ["A8"])

    def test_no_duplicates_and_no_noop_variant(self):
        term = "ICAL-05B8S2"
        variants = generate_ocr_variants(term)
        self.assertEqual(len(variants), len(set(variants)))
        self.assertNotIn(term.upper(), variants)
        for variant in variants:
            diffs = [i for i, (a, b) in enumerate(zip(term.upper(), variant)) if a != b]
            self.assertEqual(len(diffs), 1)

    def test_non_string_input_yields_nothing(self):
        self.assertEqual(generate_ocr_variants(None), [])
        self.assertEqual(generate_ocr_variants(1234), [])
        self.assertEqual(generate_ocr_variants(["O0"]), [])

    def test_confusion_map_is_read_only(self):
        with self.assertRaises(TypeError):
            CONFUSION_MAP["X"] = ("Y",)


class TestExpandCandidates(unittest.TestCase):
    def test_uppercased_term_first_and_once(self):
        for term in ("ab", "O0O1", "HANK", "icAL-1o2"):
            candidates = expand_candidates(term)
            self.assertEqual(candidates[0], term.upper())
            self.assertEqual(candidates.count(term.upper()), 1)
            self.assertEqual(len(candidates), len(set(candidates)))

    def test_candidates_without_confusables(self):
        self.assertEqual(expand_candidates("hank"), ["HANK"])

    def test_candidates_follow_variant_order(self):
        self.assertEqual(expand_candidates("O1"), ["O1", "01", "Q1", "OI", "Ol"])
