import json
import unittest

from fitplan.document_extractor import (
    close_structure,
    count_brackets,
    extract_plan_document,
    normalize_day_key,
    normalize_plan_document,
    scan_spans,
    strip_wrappers,
)


class StripWrappersTests(unittest.TestCase):
    def test_removes_markdown_fence(self):
        self.assertEqual(strip_wrappers('```json\n{"a": 1}\n```'), '{"a": 1}')

    def test_removes_byte_order_mark(self):
        self.assertEqual(strip_wrappers('\ufeff{"a": 1}'), '{"a": 1}')


class BracketScanningTests(unittest.TestCase):
    def test_braces_inside_strings_are_ignored(self):
        text = 'prefix {"note": "a } b { c"} suffix'
        spans = scan_spans(text)
        self.assertEqual(len(spans), 1)
        start, end = spans[0]
        self.assertEqual(json.loads(text[start:end]), {"note": "a } b { c"})

    def test_open_span_has_no_end(self):
        self.assertEqual(scan_spans('xx {"a": [1, 2'), [(3, None)])

    def test_count_brackets_skips_escaped_quotes(self):
        self.assertEqual(count_brackets('{"x": "say \\"}\\""} ['), (2, 1))


class CloseStructureTests(unittest.TestCase):
    def test_truncated_document_is_closed(self):
        closed = close_structure('{"days":{"day1":{"workout":{"focus":["Push"')
        self.assertEqual(json.loads(closed), {"days": {"day1": {"workout": {"focus": ["Push"]}}}})

    def test_open_string_is_terminated(self):
        closed = close_structure('{"days": {"day1": {"reason": "Push da')
        self.assertEqual(json.loads(closed), {"days": {"day1": {"reason": "Push da"}}})

    def test_dangling_colon_gets_null(self):
        closed = close_structure('{"days": {"day1": {"reason":')
        self.assertEqual(json.loads(closed), {"days": {"day1": {"reason": None}}})

    def test_dangling_key_gets_null(self):
        closed = close_structure('{"days": {"day1": {"reason"')
        self.assertEqual(json.loads(closed), {"days": {"day1": {"reason": None}}})

    def test_truncated_number_becomes_null(self):
        self.assertEqual(json.loads(close_structure('{"sets": 2.')), {"sets": None})

    def test_trailing_separators_are_removed(self):
        closed = close_structure('{"a": 1, "b": [1, 2,], }')
        self.assertEqual(json.loads(closed), {"a": 1, "b": [1, 2]})

    def test_pending_escape_is_dropped(self):
        closed = close_structure('{"reason": "line\\')
        self.assertEqual(json.loads(closed), {"reason": "line"})


class ExtractPlanDocumentTests(unittest.TestCase):
    def test_fenced_output_with_prose(self):
        raw = 'Here is your plan:\n```json\n{"days": {"day1": {"reason": "ok"}}}\n```\nEnjoy!'
        result = extract_plan_document(raw)
        self.assertEqual(result["method"], "direct")
        self.assertEqual(result["document"], {"days": {"day1": {"reason": "ok"}}})

    def test_nan_and_infinity_literals_become_null(self):
        raw = '{"days": {"day1": {"nutrition": {"total_kcal": NaN, "protein_g": Infinity, "hydration_l": -Infinity}}}}'
        result = extract_plan_document(raw)
        self.assertEqual(result["method"], "direct")
        nutrition = result["document"]["days"]["day1"]["nutrition"]
        self.assertEqual(nutrition, {"total_kcal": None, "protein_g": None, "hydration_l": None})

    def test_truncated_output_is_recovered(self):
        result = extract_plan_document('```json\n{"days":{"day1":{"workout":{"focus":["Push"')
        self.assertEqual(result["method"], "closed")
        self.assertEqual(result["document"], {"days": {"day1": {"workout": {"focus": ["Push"]}}}})
        self.assertTrue(result["notes"])

    def test_surplus_closers_are_ignored(self):
        result = extract_plan_document('{"days": {"day1": {}}}}}')
        self.assertEqual(result["document"], {"days": {"day1": {}}})

    def test_broken_envelope_falls_back_to_day_section(self):
        raw = '{"meta": "x" "days": {"day1": {"reason": "ok"}}}'
        result = extract_plan_document(raw)
        self.assertEqual(result["method"], "envelope")
        self.assertEqual(result["document"], {"days": {"day1": {"reason": "ok"}}})

    def test_no_structure_fails(self):
        result = extract_plan_document("I cannot help with that.")
        self.assertIsNone(result["document"])
        self.assertEqual(result["method"], "failed")

    def test_empty_response_fails(self):
        result = extract_plan_document("   ")
        self.assertIsNone(result["document"])
        self.assertIn("empty response", result["notes"])

    def test_valid_document_round_trips(self):
        document = {"days": {"day1": {"reason": "Push {heavy}", "workout": {"focus": ["Push"]}}}}
        result = extract_plan_document(json.dumps(document))
        self.assertEqual(result["document"], document)


class NormalizePlanDocumentTests(unittest.TestCase):
    def test_day_key_forms(self):
        self.assertEqual(normalize_day_key("Day 1"), "day1")
        self.assertEqual(normalize_day_key("day_3"), "day3")
        self.assertEqual(normalize_day_key("Sunday"), "day7")
        self.assertIsNone(normalize_day_key("day8"))
        self.assertIsNone(normalize_day_key("notes"))

    def test_weekday_keys_are_migrated(self):
        document = {"plan": {"Monday": {"reason": "a"}, "Tuesday": {"reason": "b"}}}
        normalized = normalize_plan_document(document)
        self.assertEqual(normalized, {"days": {"day1": {"reason": "a"}, "day2": {"reason": "b"}}})

    def test_top_level_day_keys_are_wrapped(self):
        normalized = normalize_plan_document({"day1": {"reason": "a"}, "extra": 1})
        self.assertEqual(normalized["days"]["day1"], {"reason": "a"})
        self.assertEqual(normalized["days"]["extra"], 1)

    def test_document_without_days_is_returned_unchanged(self):
        self.assertEqual(normalize_plan_document({"meta": 1}), {"meta": 1})


if __name__ == "__main__":
    unittest.main()
