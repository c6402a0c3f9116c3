"""
Equipment, avoid-list and dietary enforcement for plan documents.

Every pass substitutes instead of deleting, so a day never loses its
structure. Corrections are recorded, never raised.
"""

import copy
import math
import re

from fitplan.knowledge_base import DEFAULT_QTY, get_knowledge_base
from fitplan.profile_normalizer import _parse_int, diet_tier, equipment_tier, meal_names_for
from fitplan.split_selector import DAY_KEYS, normalize_focus
from fitplan.term_matcher import get_matcher


AUXILIARY_BLOCK_RE = re.compile(r"warm|cool|mobility|stretch|recovery|prep|activation", re.IGNORECASE)
DURATION_RE = re.compile(
    r"(\d+(?:\.\d+)?)\s*(?:[-–]\s*\d+(?:\.\d+)?\s*)?(minutes?|mins?|m|seconds?|secs?|s)\b",
    re.IGNORECASE,
)

WORK_SECONDS_PER_SET = 40
MAIN_REST_SECONDS = 60
AUXILIARY_REST_SECONDS = 15
SHORT_REST = "30s"
LAST_RESORT_EXERCISE = "Diaphragmatic Breathing"
MAX_SETS = 10


def is_main_block(block):
    """Warm-up, cool-down and recovery blocks are not main work."""
    return isinstance(block, dict) and not AUXILIARY_BLOCK_RE.search(str(block.get("name") or ""))


def day_focus(day_plan):
    workout = day_plan.get("workout") if isinstance(day_plan, dict) else None
    focus = workout.get("focus") if isinstance(workout, dict) else None
    return normalize_focus(focus)


def avoided_terms(profile, knowledge_base):
    """Profile avoid-list plus equipment terms the profile's tier lacks."""
    return list(profile.avoid_exercises) + knowledge_base.equipment_terms_missing(equipment_tier(profile))


def candidate_exercises(focus, profile, knowledge_base, matcher=None):
    """Focus exercises usable with the profile's equipment and avoid-list."""
    matcher = matcher or get_matcher()
    terms = avoided_terms(profile, knowledge_base)
    pool = knowledge_base.exercises_for(focus, equipment_tier(profile))
    return [name for name in pool if not matcher.matches(name, terms)]


def choose_exercise_substitute(name, focus, used, profile, knowledge_base, matcher=None):
    """
    Replacement for an exercise that hits an avoided term.

    Order: a preferred exercise, a curated replacement for the same movement
    category, another exercise of the day's focus, then a generic safe
    default.

    Returns:
        (replacement name, source label)
    """
    matcher = matcher or get_matcher()
    terms = avoided_terms(profile, knowledge_base)
    tier = equipment_tier(profile)

    def usable(candidate):
        return (
            bool(candidate)
            and candidate.lower() not in used
            and not matcher.matches(candidate, terms)
        )

    sources = [
        ("preferred", list(profile.preferred_exercises)),
        ("curated", knowledge_base.replacements_for(knowledge_base.movement_category(name), tier)),
        ("focus", candidate_exercises(focus, profile, knowledge_base, matcher)),
        ("default", knowledge_base.safe_defaults(focus)),
    ]
    for label, candidates in sources:
        for candidate in candidates:
            if usable(candidate):
                return candidate, label

    for candidate in knowledge_base.safe_defaults(focus):
        if not matcher.matches(candidate, terms):
            return candidate, "default"
    return LAST_RESORT_EXERCISE, "default"


def _add_substitution(substitutions, kind, day, path, before, after, source):
    substitutions.append(
        {
            "kind": kind,
            "day": day,
            "path": path,
            "from": before,
            "to": after,
            "source": source,
        }
    )


def _enforce_exercises(day, day_plan, profile, knowledge_base, matcher, substitutions):
    workout = day_plan.get("workout") or {}
    focus = day_focus(day_plan)
    terms = avoided_terms(profile, knowledge_base)

    used = set()
    for block in workout.get("blocks") or []:
        for item in block.get("items") or []:
            used.add(str(item.get("exercise") or "").lower())

    for b_index, block in enumerate(workout.get("blocks") or []):
        for i_index, item in enumerate(block.get("items") or []):
            name = item.get("exercise")
            if not matcher.matches(name, terms):
                continue
            replacement, source = choose_exercise_substitute(name, focus, used, profile, knowledge_base, matcher)
            item["exercise"] = replacement
            used.add(replacement.lower())
            _add_substitution(
                substitutions, "exercise", day,
                f"{day}.workout.blocks[{b_index}].items[{i_index}].exercise",
                name, replacement, source,
            )


def _enforce_meal_count(day, day_plan, profile, knowledge_base, tier, substitutions):
    nutrition = day_plan["nutrition"]
    meals = nutrition["meals"]
    target = profile.meal_count
    names = meal_names_for(target)

    if len(meals) > target:
        kept = meals[:target]
        for meal in meals[target:]:
            kept[-1]["items"].extend(meal.get("items") or [])
        _add_substitution(
            substitutions, "meal_count", day, f"{day}.nutrition.meals",
            len(meals), target, "merged",
        )
        meals = kept

    if len(meals) < target:
        before = len(meals)
        taken = {str(meal.get("name") or "").lower() for meal in meals}
        for position in range(len(meals), target):
            name = names[position]
            if name.lower() in taken:
                name = f"Meal {position + 1}"
            taken.add(name.lower())
            meals.append({"name": name, "items": knowledge_base.meal_items_for(name, tier)})
        _add_substitution(
            substitutions, "meal_count", day, f"{day}.nutrition.meals",
            before, target, "template",
        )

    nutrition["meals"] = meals


def _fold_palette(document, knowledge_base, tier):
    palette = knowledge_base.palette_for(tier)
    if not palette:
        return
    slot = 0
    entry = 0
    for day in DAY_KEYS:
        for meal in document["days"][day]["nutrition"]["meals"]:
            slot += 1
            if slot % 3 == 0:
                meal["items"] = copy.deepcopy(palette[entry % len(palette)])
                entry += 1


def _enforce_foods(day, day_plan, knowledge_base, tier, matcher, substitutions):
    forbidden = knowledge_base.forbidden_food_tokens(tier)

    for m_index, meal in enumerate(day_plan["nutrition"]["meals"]):
        for i_index, item in enumerate(meal.get("items") or []):
            path = f"{day}.nutrition.meals[{m_index}].items[{i_index}]"
            food = item.get("food")
            default_qty = DEFAULT_QTY

            resolved = knowledge_base.placeholder_food(food, tier)
            if resolved:
                item["food"] = resolved["food"]
                default_qty = resolved["qty"]
                _add_substitution(substitutions, "placeholder", day, f"{path}.food", food, resolved["food"], "placeholder")
                food = item["food"]

            token = matcher.first_match(food, forbidden)
            if token:
                replacement = knowledge_base.food_swap(token, tier)
                if matcher.matches(replacement, forbidden):
                    replacement = knowledge_base.placeholder_food("lean protein", tier)["food"]
                item["food"] = replacement
                item.pop("macros", None)
                _add_substitution(substitutions, "food", day, f"{path}.food", food, replacement, "swap")

            qty = item.get("qty")
            if isinstance(qty, str) and knowledge_base.is_placeholder_qty(qty):
                item["qty"] = default_qty
                _add_substitution(substitutions, "placeholder", day, f"{path}.qty", qty, default_qty, "placeholder")


def _force_targets(day_plan, targets):
    nutrition = day_plan["nutrition"]
    nutrition["total_kcal"] = targets["energy_kcal"]
    nutrition["protein_g"] = targets["protein_g"]
    nutrition["hydration_l"] = targets["hydration_l"]


def _duration_seconds(text):
    match = DURATION_RE.search(str(text or ""))
    if not match:
        return None
    amount = float(match.group(1))
    unit = match.group(2).lower()
    return amount * 60 if unit.startswith("m") else amount


def _set_seconds(item, main):
    work = _duration_seconds(item.get("reps"))
    if work is None:
        work = WORK_SECONDS_PER_SET
    rest = _duration_seconds(item.get("rest"))
    if rest is None:
        rest = MAIN_REST_SECONDS if main else AUXILIARY_REST_SECONDS
    return work + rest


def _item_seconds(item, main):
    sets = max(1, _parse_int(item.get("sets")) or 1)
    return sets * _set_seconds(item, main)


def estimate_session_minutes(workout):
    """Approximate session length in minutes from sets, reps/time and rest."""
    total = 0.0
    for block in (workout or {}).get("blocks") or []:
        main = is_main_block(block)
        for item in block.get("items") or []:
            total += _item_seconds(item, main)
    return total / 60.0


def _clamp_sets(day, day_plan, substitutions):
    """Cap every item at MAX_SETS so later time estimates stay bounded."""
    for b_index, block in enumerate(day_plan["workout"].get("blocks") or []):
        for i_index, item in enumerate(block.get("items") or []):
            sets = _parse_int(item.get("sets"))
            if sets is not None and sets > MAX_SETS:
                item["sets"] = MAX_SETS
                path = f"{day}.workout.blocks[{b_index}].items[{i_index}].sets"
                _add_substitution(substitutions, "sets", day, path, sets, MAX_SETS, "clamped")


def _reduce_sets(workout, cap):
    items = [
        (item, _set_seconds(item, True))
        for block in workout.get("blocks") or []
        if is_main_block(block)
        for item in block.get("items") or []
    ]
    remaining = estimate_session_minutes(workout) * 60.0
    limit = cap * 60.0
    while remaining > limit:
        reducible = [(item, seconds) for item, seconds in items if (_parse_int(item.get("sets")) or 1) > 1]
        if not reducible:
            return False
        target, seconds = max(reducible, key=lambda pair: _parse_int(pair[0].get("sets")) or 1)
        target["sets"] = (_parse_int(target.get("sets")) or 1) - 1
        remaining -= seconds
    return True


def _shorten_timed_work(workout, cap):
    current = estimate_session_minutes(workout)
    if current <= cap:
        return
    ratio = cap / current
    for block in workout.get("blocks") or []:
        for item in block.get("items") or []:
            seconds = _duration_seconds(item.get("reps"))
            if seconds is None:
                continue
            scaled = seconds * ratio
            if scaled >= 60:
                item["reps"] = f"{max(1, int(math.floor(scaled / 60)))} min"
            else:
                item["reps"] = f"{max(10, int(math.floor(scaled)))}s"


def _enforce_session_cap(day, day_plan, cap, substitutions):
    workout = day_plan["workout"]
    before = estimate_session_minutes(workout)
    if before <= cap:
        return
    if not _reduce_sets(workout, cap):
        for block in workout.get("blocks") or []:
            for item in block.get("items") or []:
                item["rest"] = SHORT_REST
        _shorten_timed_work(workout, cap)
    after = estimate_session_minutes(workout)
    _add_substitution(
        substitutions, "session_time", day, f"{day}.workout",
        round(before, 1), round(after, 1), "trimmed",
    )


def enforce_constraints(document, profile, targets, knowledge_base=None, matcher=None):
    """
    Apply equipment/avoid-list, dietary, palette and target constraints.

    The document must already pass structural validation. The input is not
    mutated.

    Returns:
        dict with "document" and "substitutions" (list of correction records)
    """
    knowledge_base = knowledge_base or get_knowledge_base()
    matcher = matcher or get_matcher()
    tier = diet_tier(profile)
    substitutions = []
    result = copy.deepcopy(document)

    for day in DAY_KEYS:
        day_plan = result["days"][day]
        _enforce_exercises(day, day_plan, profile, knowledge_base, matcher, substitutions)
        _enforce_meal_count(day, day_plan, profile, knowledge_base, tier, substitutions)

    _fold_palette(result, knowledge_base, tier)

    for day in DAY_KEYS:
        day_plan = result["days"][day]
        _enforce_foods(day, day_plan, knowledge_base, tier, matcher, substitutions)
        _force_targets(day_plan, targets)
        _clamp_sets(day, day_plan, substitutions)
        _enforce_session_cap(day, day_plan, profile.session_minutes, substitutions)

    return {"document": result, "substitutions": substitutions}
