"""
Deterministic weekly plan generation without the generation service.

Only the profile normalizer, split selector and knowledge base are used.
Selection never involves randomness: rotating offsets and a stable hash of
the day label make repeated calls byte-identical for the same profile.
"""

import zlib

from fitplan.constraint_enforcer import avoided_terms
from fitplan.knowledge_base import KnowledgeBaseError, get_knowledge_base
from fitplan.nutrition_estimator import estimate_item_macros
from fitplan.profile_normalizer import diet_tier, equipment_tier, infer_intensity, meal_names_for
from fitplan.term_matcher import get_matcher


SETS_BY_LEVEL = {"beginner": 3, "intermediate": 3, "advanced": 4}
RIR_BY_LEVEL = {"beginner": 3, "intermediate": 2, "advanced": 1}
REPS_BY_GOAL = {"fat_loss": "12-15", "muscle_gain": "8-12", "endurance": "15-20", "general": "10-12"}
REST_BY_GOAL = {"fat_loss": "45s", "muscle_gain": "90s", "endurance": "45s", "general": "60s"}

GOAL_LABELS = {
    "fat_loss": "fat loss",
    "muscle_gain": "muscle gain",
    "endurance": "endurance",
    "general": "general fitness",
}
EQUIPMENT_LABELS = {
    "gym": "gym",
    "dumbbells": "dumbbell",
    "bands": "resistance band",
    "bodyweight": "bodyweight",
}

WARMUP_ITEMS = 2
COOLDOWN_ITEMS = 2
SHORT_SESSION_MINUTES = 45


def stable_index(label, size):
    """Deterministic index in [0, size) derived from a label."""
    if size <= 0:
        return 0
    return zlib.crc32(label.encode("utf-8")) % size


def _rotate(pool, offset, count):
    if not pool:
        return []
    count = min(count, len(pool))
    return [pool[(offset + i) % len(pool)] for i in range(count)]


def _usable_pool(pool, terms, matcher):
    return [name for name in pool if not matcher.matches(name, terms)]


def _main_items(profile, focus, occurrence, knowledge_base, terms, matcher):
    tier = equipment_tier(profile)
    pool = knowledge_base.exercises_for(focus, tier)
    if not pool:
        raise KnowledgeBaseError(f"No exercises for focus '{focus}' at tier '{tier}'.")

    usable = _usable_pool(pool, terms, matcher) or pool
    count = 3 if profile.session_minutes < SHORT_SESSION_MINUTES else 4
    names = _rotate(usable, occurrence * 2, count)
    return [
        {
            "exercise": name,
            "sets": SETS_BY_LEVEL[profile.experience_level],
            "reps": REPS_BY_GOAL[profile.goal],
            "RIR": RIR_BY_LEVEL[profile.experience_level],
            "rest": REST_BY_GOAL[profile.goal],
        }
        for name in names
    ]


def _timed_items(names, reps):
    return [{"exercise": name, "sets": 1, "reps": reps, "RIR": 4} for name in names]


def build_workout(profile, slot, occurrence, knowledge_base, terms, matcher):
    """Warm-up, main and cool-down blocks for one day slot."""
    focus = slot["focus"]
    if not slot["is_training_day"]:
        pool = _usable_pool(knowledge_base.exercises_for("Recovery", equipment_tier(profile)), terms, matcher)
        if not pool:
            raise KnowledgeBaseError("No recovery exercises available.")
        names = _rotate(pool, stable_index(slot["key"], len(pool)), 2)
        return {
            "focus": [focus],
            "blocks": [
                {"name": "Active Recovery", "items": _timed_items(names[:1], "20 min") + _timed_items(names[1:], "5 min")},
            ],
            "notes": "Easy movement only. Keep intensity conversational.",
        }

    warmup = _usable_pool(knowledge_base.warmup_for(focus), terms, matcher)[:WARMUP_ITEMS]
    cooldown = _usable_pool(knowledge_base.cooldown_for(focus), terms, matcher)[:COOLDOWN_ITEMS]
    blocks = []
    if warmup:
        blocks.append({"name": "Warm-up", "items": _timed_items(warmup, "60s")})
    blocks.append({"name": "Main", "items": _main_items(profile, focus, occurrence, knowledge_base, terms, matcher)})
    if cooldown:
        blocks.append({"name": "Cool-down", "items": _timed_items(cooldown, "45s")})

    return {
        "focus": [focus],
        "blocks": blocks,
        "notes": f"Leave {RIR_BY_LEVEL[profile.experience_level]} reps in reserve on every working set.",
    }


def build_nutrition(profile, targets, knowledge_base):
    tier = diet_tier(profile)
    meals = []
    for name in meal_names_for(profile.meal_count):
        items = knowledge_base.meal_items_for(name, tier)
        if not items:
            raise KnowledgeBaseError(f"No meal template for '{name}' in diet tier '{tier}'.")
        for item in items:
            macros = estimate_item_macros(item["food"], item["qty"])
            if macros:
                item["macros"] = macros
        meals.append({"name": name, "items": items})

    return {
        "total_kcal": targets["energy_kcal"],
        "protein_g": targets["protein_g"],
        "meals": meals,
        "hydration_l": targets["hydration_l"],
    }


def build_supplements(profile, knowledge_base):
    supplements = [
        {"name": name, "timing": knowledge_base.supplement_timing(name)}
        for name in profile.supplements
    ]
    taken = {item["name"].lower() for item in supplements}
    for add_on in knowledge_base.goal_supplement_add_ons(profile.goal):
        if not any(add_on["name"].lower() in name or name in add_on["name"].lower() for name in taken):
            add_on["optional"] = True
            supplements.append(add_on)
    return supplements


def build_recovery(profile, slot, knowledge_base):
    label = f"{slot['key']}:{slot['focus']}"
    mobility_options = knowledge_base.recovery_templates(slot["focus"], slot["is_training_day"])
    sleep_options = knowledge_base.sleep_templates(infer_intensity(profile))
    care_notes = knowledge_base.care_notes()
    if not mobility_options or not sleep_options:
        raise KnowledgeBaseError("Recovery templates are empty.")

    recovery = {
        "mobility": mobility_options[stable_index(label, len(mobility_options))],
        "sleep": sleep_options[stable_index(label + ":sleep", len(sleep_options))],
    }
    if care_notes:
        recovery["careNotes"] = care_notes[stable_index(label + ":care", len(care_notes))]
    supplements = build_supplements(profile, knowledge_base)
    if supplements:
        recovery["supplements"] = supplements
    return recovery


def build_reason(profile, slot):
    goal = GOAL_LABELS[profile.goal]
    equipment = EQUIPMENT_LABELS[equipment_tier(profile)]
    if not slot["is_training_day"]:
        return f"Recovery day to absorb the week's training and support your {goal} goal."
    return f"Today's plan is designed for your {goal} goal with {equipment} exercises, focusing on {slot['focus']}."


def build_fallback_days(profile, targets, slots, knowledge_base=None, matcher=None):
    """
    Build all seven day plans deterministically.

    Raises:
        KnowledgeBaseError: a table needed to build the plan is empty
    """
    knowledge_base = knowledge_base or get_knowledge_base()
    matcher = matcher or get_matcher()
    terms = avoided_terms(profile, knowledge_base)

    days = {}
    occurrences = {}
    for slot in slots:
        occurrence = occurrences.get(slot["focus"], 0)
        if slot["is_training_day"]:
            occurrences[slot["focus"]] = occurrence + 1
        days[slot["key"]] = {
            "workout": build_workout(profile, slot, occurrence, knowledge_base, terms, matcher),
            "nutrition": build_nutrition(profile, targets, knowledge_base),
            "recovery": build_recovery(profile, slot, knowledge_base),
            "reason": build_reason(profile, slot),
        }
    return {"days": days}
