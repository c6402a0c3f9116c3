import unittest

from fitplan.plan_validator import validate_plan_document
from fitplan.split_selector import DAY_KEYS


def _day(focus="Push"):
    return {
        "workout": {
            "focus": [focus],
            "blocks": [
                {
                    "name": "Main",
                    "items": [{"exercise": "Push-ups", "sets": 3, "reps": "8-12", "RIR": 2}],
                }
            ],
            "notes": "",
        },
        "nutrition": {
            "total_kcal": 2200,
            "protein_g": 140,
            "meals": [{"name": "Breakfast", "items": [{"food": "Oats", "qty": "60g"}]}],
            "hydration_l": 2.5,
        },
        "recovery": {"mobility": ["Hip flexor stretch"], "sleep": ["Aim for 8 hours"]},
        "reason": "Upper body pressing.",
    }


def _week():
    return {"days": {key: _day() for key in DAY_KEYS}}


class PlanValidatorTests(unittest.TestCase):
    def test_complete_week_is_ok(self):
        result = validate_plan_document(_week())
        self.assertEqual(result["status"], "ok")
        self.assertEqual(result["violations"], [])

    def test_missing_day_needs_repair(self):
        document = _week()
        del document["days"]["day4"]
        result = validate_plan_document(document)
        self.assertEqual(result["status"], "needs_repair")
        self.assertIn(("missing_day", "day4"), {(v["code"], v["day"]) for v in result["violations"]})

    def test_truncated_document_reports_each_gap(self):
        document = {"days": {"day1": {"workout": {"focus": ["Push"]}}}}
        result = validate_plan_document(document)
        self.assertEqual(result["status"], "needs_repair")
        found = {(v["code"], v["day"]) for v in result["violations"]}
        for day in DAY_KEYS[1:]:
            self.assertIn(("missing_day", day), found)
        self.assertIn(("missing_nutrition", "day1"), found)
        self.assertIn(("missing_recovery", "day1"), found)
        self.assertIn(("missing_blocks", "day1"), found)

    def test_non_mapping_document_is_unrecoverable(self):
        for document in [None, [], "text", {"plan": "none"}]:
            result = validate_plan_document(document)
            self.assertEqual(result["status"], "unrecoverable")
            self.assertEqual(result["violations"][0]["code"], "missing_days")

    def test_days_without_sections_are_unrecoverable(self):
        result = validate_plan_document({"days": {"day1": {"reason": "x"}, "day2": "rest"}})
        self.assertEqual(result["status"], "unrecoverable")

    def test_unknown_day_key_is_reported(self):
        document = _week()
        document["days"]["day8"] = _day()
        codes = {v["code"] for v in validate_plan_document(document)["violations"]}
        self.assertIn("unknown_day", codes)

    def test_meal_item_without_quantity_has_exact_path(self):
        document = _week()
        document["days"]["day2"]["nutrition"]["meals"][0]["items"][0]["qty"] = ""
        result = validate_plan_document(document)
        paths = {v["path"] for v in result["violations"] if v["code"] == "item_missing_qty"}
        self.assertEqual(paths, {"day2.nutrition.meals[0].items[0].qty"})

    def test_numeric_quantity_is_accepted(self):
        document = _week()
        document["days"]["day1"]["nutrition"]["meals"][0]["items"][0]["qty"] = 2
        self.assertEqual(validate_plan_document(document)["status"], "ok")

    def test_non_numeric_totals_are_flagged(self):
        document = _week()
        document["days"]["day3"]["nutrition"]["total_kcal"] = "2200 kcal"
        document["days"]["day3"]["nutrition"]["protein_g"] = True
        codes = [v["code"] for v in validate_plan_document(document)["violations"]]
        self.assertEqual(codes.count("invalid_total"), 2)

    def test_non_finite_numbers_are_invalid(self):
        document = _week()
        document["days"]["day1"]["nutrition"]["total_kcal"] = float("nan")
        document["days"]["day1"]["nutrition"]["protein_g"] = float("inf")
        document["days"]["day2"]["nutrition"]["meals"][0]["items"][0]["qty"] = float("-inf")
        result = validate_plan_document(document)
        self.assertEqual(result["status"], "needs_repair")
        codes = [v["code"] for v in result["violations"]]
        self.assertEqual(codes.count("invalid_total"), 2)
        self.assertIn("item_missing_qty", codes)

    def test_empty_workout_parts_are_flagged(self):
        document = _week()
        document["days"]["day5"]["workout"] = {"focus": [], "blocks": [{"name": "Main", "items": [{}]}]}
        codes = {v["code"] for v in validate_plan_document(document)["violations"]}
        self.assertIn("missing_focus", codes)
        self.assertIn("item_missing_exercise", codes)

    def test_empty_recovery_and_reason_are_flagged(self):
        document = _week()
        document["days"]["day6"]["recovery"] = {"mobility": [], "sleep": [""]}
        document["days"]["day6"]["reason"] = " "
        codes = {v["code"] for v in validate_plan_document(document)["violations"]}
        self.assertTrue({"missing_mobility", "missing_sleep", "missing_reason"} <= codes)

    def test_validation_does_not_mutate_input(self):
        document = _week()
        del document["days"]["day1"]["reason"]
        validate_plan_document(document)
        self.assertNotIn("reason", document["days"]["day1"])


if __name__ == "__main__":
    unittest.main()
