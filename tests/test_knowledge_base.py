import os
import tempfile
import unittest

from fitplan.knowledge_base import (
    DIET_TIERS,
    KnowledgeBase,
    get_knowledge_base,
    meal_kind,
    reset_knowledge_base,
)
from fitplan.term_matcher import SubstringMatcher


class KnowledgeBaseTests(unittest.TestCase):
    def setUp(self):
        self.kb = KnowledgeBase(overrides_file=None)

    def test_every_focus_has_exercises_at_every_tier(self):
        for focus in ["Full Body", "Upper", "Lower", "Push", "Pull", "Legs", "Conditioning", "Recovery"]:
            for tier in ["bodyweight", "bands", "dumbbells", "gym"]:
                self.assertTrue(self.kb.exercises_for(focus, tier), f"{focus}/{tier}")

    def test_lookups_return_copies(self):
        pool = self.kb.exercises_for("Push", "gym")
        pool.append("Made Up Press")
        self.assertNotIn("Made Up Press", self.kb.exercises_for("Push", "gym"))

    def test_equipment_terms_missing(self):
        self.assertEqual(self.kb.equipment_terms_missing("gym"), [])
        self.assertIn("barbell", self.kb.equipment_terms_missing("dumbbells"))
        self.assertIn("band", self.kb.equipment_terms_missing("bodyweight"))

    def test_movement_category(self):
        self.assertEqual(self.kb.movement_category("Barbell Back Squat"), "squat")
        self.assertEqual(self.kb.movement_category("Lat Pulldown"), "vertical_pull")
        self.assertIsNone(self.kb.movement_category("Turkish Get-up"))

    def test_meal_kind(self):
        self.assertEqual(meal_kind("Breakfast"), "breakfast")
        self.assertEqual(meal_kind("Main Meal"), "lunch")
        self.assertEqual(meal_kind("Second Meal"), "dinner")
        self.assertEqual(meal_kind("Snack 2"), "snack")

    def test_food_swap_and_placeholder(self):
        self.assertEqual(self.kb.food_swap("chicken", "vegetarian"), "Grilled tofu")
        self.assertEqual(self.kb.food_swap("venison", "vegetarian"), "Paneer")
        self.assertEqual(self.kb.placeholder_food("Lean Protein", "vegetarian"), {"food": "Paneer", "qty": "100g"})
        self.assertEqual(self.kb.placeholder_food("Food 3", "omnivore")["food"], "Greek yogurt")
        self.assertIsNone(self.kb.placeholder_food("Oats", "omnivore"))
        self.assertTrue(self.kb.is_placeholder_qty("As needed"))
        self.assertFalse(self.kb.is_placeholder_qty("60g"))

    def test_diet_tier_tables_respect_their_own_restrictions(self):
        matcher = SubstringMatcher()
        for tier in DIET_TIERS:
            forbidden = self.kb.forbidden_food_tokens(tier)
            foods = [item["food"] for items in self.kb.meal_template_for(tier).values() for item in items]
            foods += [item["food"] for entry in self.kb.palette_for(tier) for item in entry]
            for name in ["lean protein", "complex carbs", "healthy fats", "vegetables", "fruit", "snack"]:
                foods.append(self.kb.placeholder_food(name, tier)["food"])
            foods += [self.kb.food_swap(token, tier) for token in forbidden]
            self.assertTrue(foods, tier)
            for food in foods:
                self.assertFalse(matcher.matches(food, forbidden), f"{tier}: {food}")

    def test_vegan_tier_excludes_dairy(self):
        self.assertIn("yogurt", self.kb.forbidden_food_tokens("vegan"))
        self.assertNotIn("yogurt", self.kb.forbidden_food_tokens("vegetarian"))
        self.assertEqual(self.kb.food_swap("milk", "vegan"), "Fortified soy drink")
        self.assertEqual(self.kb.placeholder_food("Lean Protein", "vegan"), {"food": "Tofu", "qty": "150g"})

    def test_recovery_templates_by_day_type(self):
        rest = self.kb.recovery_templates("Push", is_training_day=False)
        upper = self.kb.recovery_templates("Push")
        self.assertNotEqual(rest, upper)
        self.assertTrue(all(isinstance(option, list) and option for option in upper))

    def test_supplement_timing(self):
        self.assertIn("after training", self.kb.supplement_timing("Whey Protein"))
        self.assertEqual(self.kb.supplement_timing("Ashwagandha"), "As directed on the label")

    def test_overrides_file_extends_tables(self):
        with tempfile.TemporaryDirectory() as folder:
            path = os.path.join(folder, "overrides.yaml")
            with open(path, "w") as f:
                f.write(
                    "exercises:\n"
                    "  Push:\n"
                    "    bodyweight:\n"
                    "      - Archer Push-ups\n"
                    "food_swaps:\n"
                    "  vegetarian:\n"
                    "    Duck: Jackfruit\n"
                )
            kb = KnowledgeBase(overrides_file=path)
        self.assertEqual(kb.exercises_for("Push", "bodyweight")[-1], "Archer Push-ups")
        self.assertEqual(kb.food_swap("duck", "vegetarian"), "Jackfruit")

    def test_malformed_overrides_are_ignored(self):
        with tempfile.TemporaryDirectory() as folder:
            path = os.path.join(folder, "overrides.yaml")
            with open(path, "w") as f:
                f.write("exercises: [unclosed\n")
            kb = KnowledgeBase(overrides_file=path)
        self.assertEqual(kb.exercises_for("Push", "gym"), self.kb.exercises_for("Push", "gym"))

    def test_missing_overrides_file_is_ignored(self):
        kb = KnowledgeBase(overrides_file="/nonexistent/overrides.yaml")
        self.assertTrue(kb.exercises_for("Legs", "bands"))


class KnowledgeBaseSingletonTests(unittest.TestCase):
    def tearDown(self):
        reset_knowledge_base()

    def test_singleton_and_reset(self):
        reset_knowledge_base()
        first = get_knowledge_base(overrides_file=None)
        self.assertIs(first, get_knowledge_base(overrides_file=None))
        reset_knowledge_base()
        self.assertIsNot(first, get_knowledge_base(overrides_file=None))


if __name__ == "__main__":
    unittest.main()
