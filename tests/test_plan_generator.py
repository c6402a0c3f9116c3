import json
import os
import tempfile
import threading
import unittest
from datetime import datetime, timezone
from unittest import mock

from fitplan.constraint_enforcer import MAX_SETS
from fitplan.fallback_generator import build_fallback_days
from fitplan.generation_adapter import AdapterFailure
from fitplan.knowledge_base import FORBIDDEN_FOOD_TOKENS, KnowledgeBase, KnowledgeBaseError
from fitplan.plan_generator import DONE, FALLBACK, START, PlanGenerator
from fitplan.plan_validator import validate_plan_document
from fitplan.profile_normalizer import Profile, derive_targets
from fitplan.split_selector import DAY_KEYS, build_day_slots
from fitplan.term_matcher import SubstringMatcher


PROFILE = {
    "goal": "muscle_gain",
    "experience_level": "intermediate",
    "weight_kg": 78,
    "height_cm": 178,
    "age": 29,
    "sex": "male",
    "equipment": ["Full Gym"],
    "training_days": 4,
    "meal_count": 3,
}


def _document_text(fields=None):
    profile = Profile.from_dict(fields or PROFILE)
    document = build_fallback_days(
        profile,
        derive_targets(profile),
        build_day_slots(profile),
        KnowledgeBase(overrides_file=None),
        SubstringMatcher(),
    )
    return json.dumps(document)


class FakeAdapter:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = 0

    def generate(self, instruction_text):
        self.calls += 1
        if self.error:
            raise self.error
        return self.text


class BlockingAdapter:
    def __init__(self):
        self.release = threading.Event()

    def generate(self, instruction_text):
        self.release.wait(5)
        return "{}"


class PlanGeneratorTests(unittest.TestCase):
    def setUp(self):
        self.kb = KnowledgeBase(overrides_file=None)

    def _generator(self, adapter=None, config=None):
        return PlanGenerator(config=config or {}, adapter=adapter, knowledge_base=self.kb)

    def test_offline_uses_fallback(self):
        plan = self._generator().generate_weekly_plan(PROFILE)
        self.assertEqual(plan["provenance"]["source"], "fallback")
        self.assertEqual(plan["provenance"]["fallback_reason"], "generation disabled")
        self.assertEqual(plan["provenance"]["states"][0], START)
        self.assertIn(FALLBACK, plan["provenance"]["states"])
        self.assertEqual(plan["provenance"]["states"][-1], DONE)
        self.assertEqual(validate_plan_document(plan)["status"], "ok")

    def test_disabled_generation_skips_adapter(self):
        adapter = FakeAdapter(text=_document_text())
        plan = self._generator(adapter, {"generation": {"enabled": False}}).generate_weekly_plan(PROFILE)
        self.assertEqual(adapter.calls, 0)
        self.assertEqual(plan["provenance"]["source"], "fallback")

    def test_valid_response_is_used(self):
        adapter = FakeAdapter(text="```json\n" + _document_text() + "\n```")
        plan = self._generator(adapter).generate_weekly_plan(PROFILE)
        self.assertEqual(adapter.calls, 1)
        self.assertEqual(plan["provenance"]["source"], "ai")
        self.assertIsNone(plan["provenance"]["fallback_reason"])
        self.assertEqual(sorted(plan["days"]), DAY_KEYS)

    def test_truncated_response_is_repaired(self):
        text = _document_text()
        truncated = text[:text.index('"day6"')]
        plan = self._generator(FakeAdapter(text=truncated)).generate_weekly_plan(PROFILE)
        self.assertEqual(plan["provenance"]["source"], "ai_repaired")
        self.assertGreater(plan["provenance"]["repaired_fields"], 0)
        self.assertEqual(sorted(plan["days"]), DAY_KEYS)
        self.assertEqual(validate_plan_document(plan)["status"], "ok")

    def test_adapter_failure_falls_back(self):
        adapter = FakeAdapter(error=AdapterFailure("rate_limit", "slow down"))
        plan = self._generator(adapter).generate_weekly_plan(PROFILE)
        self.assertEqual(plan["provenance"]["source"], "fallback")
        self.assertEqual(plan["provenance"]["fallback_reason"], "adapter_failure: rate_limit")

    def test_slow_adapter_times_out(self):
        adapter = BlockingAdapter()
        self.addCleanup(adapter.release.set)
        generator = self._generator(adapter, {"generation": {"timeout_seconds": 0.05}})
        plan = generator.generate_weekly_plan(PROFILE)
        self.assertEqual(plan["provenance"]["source"], "fallback")
        self.assertEqual(plan["provenance"]["fallback_reason"], "adapter_failure: timeout")

    def test_unexpected_adapter_error_falls_back(self):
        plan = self._generator(FakeAdapter(error=RuntimeError("boom"))).generate_weekly_plan(PROFILE)
        self.assertEqual(plan["provenance"]["source"], "fallback")
        self.assertEqual(plan["provenance"]["fallback_reason"], "adapter_failure: service_error")
        self.assertEqual(validate_plan_document(plan)["status"], "ok")

    def test_error_while_processing_response_falls_back(self):
        text = _document_text()
        truncated = text[:text.index('"day6"')]
        with mock.patch("fitplan.plan_generator.repair_plan_document", side_effect=RuntimeError("bad state")):
            plan = self._generator(FakeAdapter(text=truncated)).generate_weekly_plan(PROFILE)
        self.assertEqual(plan["provenance"]["source"], "fallback")
        self.assertEqual(plan["provenance"]["fallback_reason"], "internal_error")
        self.assertEqual(sorted(plan["days"]), DAY_KEYS)

    def test_nan_and_infinity_totals_still_produce_a_plan(self):
        for literal in ["NaN", "Infinity", "-Infinity"]:
            text = '{"days":{"day1":{"nutrition":{"total_kcal":%s,"protein_g":120,"meals":[]}}}}' % literal
            plan = self._generator(FakeAdapter(text=text)).generate_weekly_plan(PROFILE)
            self.assertEqual(plan["provenance"]["source"], "ai_repaired", literal)
            self.assertEqual(sorted(plan["days"]), DAY_KEYS)
            self.assertEqual(validate_plan_document(plan)["status"], "ok")
            json.dumps(plan, allow_nan=False)

    def test_huge_set_count_is_clamped(self):
        document = json.loads(_document_text())
        for day in document["days"].values():
            for block in day["workout"]["blocks"]:
                if block["name"] == "Main":
                    block["items"][0]["sets"] = 200000
        plan = self._generator(FakeAdapter(text=json.dumps(document))).generate_weekly_plan(PROFILE)
        self.assertEqual(plan["provenance"]["source"], "ai")
        for day in plan["days"].values():
            for block in day["workout"]["blocks"]:
                for item in block["items"]:
                    self.assertLessEqual(int(item["sets"]), MAX_SETS)

    def test_unparseable_response_falls_back(self):
        plan = self._generator(FakeAdapter(text="Sorry, I can't do that.")).generate_weekly_plan(PROFILE)
        self.assertEqual(plan["provenance"]["fallback_reason"], "extraction_failure")

    def test_response_without_days_falls_back(self):
        plan = self._generator(FakeAdapter(text='{"message": "hello"}')).generate_weekly_plan(PROFILE)
        self.assertEqual(plan["provenance"]["source"], "fallback")
        self.assertEqual(plan["provenance"]["fallback_reason"], "validation_failure")

    def test_ai_plan_is_made_diet_compliant(self):
        vegetarian = dict(PROFILE, dietary_preferences=["vegetarian"])
        adapter = FakeAdapter(text=_document_text(PROFILE))
        plan = self._generator(adapter).generate_weekly_plan(vegetarian)
        self.assertEqual(plan["provenance"]["source"], "ai")
        self.assertGreater(plan["provenance"]["substitutions"], 0)
        matcher = SubstringMatcher()
        for day in plan["days"].values():
            for meal in day["nutrition"]["meals"]:
                for item in meal["items"]:
                    self.assertFalse(matcher.matches(item["food"], FORBIDDEN_FOOD_TOKENS["vegetarian"]))

    def test_repeated_exercise_is_diversified(self):
        document = json.loads(_document_text())
        for day in document["days"].values():
            for block in day["workout"]["blocks"]:
                if block["name"] == "Main":
                    block["items"][0]["exercise"] = "Barbell Bench Press"
        plan = self._generator(FakeAdapter(text=json.dumps(document))).generate_weekly_plan(PROFILE)
        names = [
            item["exercise"]
            for day in plan["days"].values()
            for block in day["workout"]["blocks"]
            if block["name"] == "Main"
            for item in block["items"]
        ]
        self.assertLessEqual(names.count("Barbell Bench Press"), 2)
        self.assertGreater(plan["provenance"]["diversity_swaps"], 0)

    def test_plan_metadata(self):
        now = datetime(2026, 1, 5, tzinfo=timezone.utc)
        plan = self._generator().generate_weekly_plan(dict(PROFILE, goal_weight_kg=82), now=now)
        self.assertEqual(plan["created_at"], "2026-01-05T00:00:00+00:00")
        self.assertFalse(plan["is_locked"])
        self.assertIsInstance(plan["estimated_weeks_to_goal"], int)

    def test_targets_are_applied_to_every_day(self):
        targets = derive_targets(Profile.from_dict(PROFILE))
        plan = self._generator(FakeAdapter(text=_document_text())).generate_weekly_plan(PROFILE)
        for day in plan["days"].values():
            self.assertEqual(day["nutrition"]["total_kcal"], targets["energy_kcal"])
            self.assertEqual(day["nutrition"]["protein_g"], targets["protein_g"])

    def test_empty_knowledge_base_propagates(self):
        generator = PlanGenerator(knowledge_base=KnowledgeBase(overrides_file=None, exercise_table={}))
        with self.assertRaises(KnowledgeBaseError):
            generator.generate_weekly_plan(PROFILE)

    def test_save_plan_writes_json(self):
        plan = self._generator().generate_weekly_plan(PROFILE)
        with tempfile.TemporaryDirectory() as folder:
            path = self._generator().save_plan(plan, output_folder=folder)
            self.assertTrue(os.path.exists(path))
            with open(path) as f:
                self.assertEqual(json.load(f), plan)

    def test_save_plan_without_plan_returns_none(self):
        self.assertIsNone(self._generator().save_plan(None))


if __name__ == "__main__":
    unittest.main()
