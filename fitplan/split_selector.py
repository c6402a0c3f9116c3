"""
Deterministic training split selection and weekly schedule layout.
"""

import math
import re

from fitplan.profile_normalizer import _clamp


DAY_KEYS = ["day1", "day2", "day3", "day4", "day5", "day6", "day7"]

REST_FOCUS = "Recovery"

FOCUSES = ["Full Body", "Upper", "Lower", "Push", "Pull", "Legs", "Conditioning", "Recovery"]

SPLIT_TABLE = {
    "beginner": {
        1: ["Full Body"],
        2: ["Full Body", "Full Body"],
        3: ["Full Body", "Full Body", "Full Body"],
        4: ["Upper", "Lower", "Upper", "Lower"],
        5: ["Upper", "Lower", "Full Body", "Upper", "Lower"],
        6: ["Upper", "Lower", "Full Body", "Upper", "Lower", "Conditioning"],
        7: ["Upper", "Lower", "Full Body", "Upper", "Lower", "Conditioning", "Recovery"],
    },
    "intermediate": {
        1: ["Full Body"],
        2: ["Upper", "Lower"],
        3: ["Push", "Pull", "Legs"],
        4: ["Upper", "Lower", "Upper", "Lower"],
        5: ["Push", "Pull", "Legs", "Upper", "Lower"],
        6: ["Push", "Pull", "Legs", "Push", "Pull", "Legs"],
        7: ["Push", "Pull", "Legs", "Upper", "Lower", "Full Body", "Recovery"],
    },
    "advanced": {
        1: ["Full Body"],
        2: ["Upper", "Lower"],
        3: ["Push", "Pull", "Legs"],
        4: ["Push", "Pull", "Legs", "Upper"],
        5: ["Push", "Pull", "Legs", "Upper", "Lower"],
        6: ["Push", "Pull", "Legs", "Push", "Pull", "Legs"],
        7: ["Push", "Pull", "Legs", "Push", "Pull", "Legs", "Conditioning"],
    },
}

# Ordered: the first pattern that matches a free-text focus label wins.
FOCUS_PATTERNS = [
    ("Recovery", re.compile(r"\b(recovery|rest|mobility|stretch|yoga)\b", re.IGNORECASE)),
    ("Full Body", re.compile(r"\b(full[\s-]*body|total[\s-]*body|whole[\s-]*body)\b", re.IGNORECASE)),
    ("Conditioning", re.compile(r"\b(conditioning|cardio|hiit|metcon|endurance)\b", re.IGNORECASE)),
    ("Legs", re.compile(r"\b(legs?|quads?|hamstrings?|glutes?)\b", re.IGNORECASE)),
    ("Lower", re.compile(r"\b(lower)\b", re.IGNORECASE)),
    ("Upper", re.compile(r"\b(upper)\b", re.IGNORECASE)),
    ("Push", re.compile(r"\b(push|chest|triceps?|shoulders?)\b", re.IGNORECASE)),
    ("Pull", re.compile(r"\b(pull|back|biceps?|lats?)\b", re.IGNORECASE)),
]


def select_split(experience_level, training_days):
    """Ordered focus labels for (experience level, training-day count)."""
    level = experience_level if experience_level in SPLIT_TABLE else "beginner"
    days = _clamp(int(training_days or 1), 1, 7)
    return list(SPLIT_TABLE[level][days])


def distribute_training_days(training_days):
    """
    Spread N training days evenly across seven ordinal slots.

    Each multiple of 7/N is rounded half-up; collisions are reconciled so the
    result always holds exactly N training days.

    Returns:
        list of seven booleans (True = training day)
    """
    count = _clamp(int(training_days or 1), 1, 7)
    step = 7.0 / count

    chosen = []
    for i in range(count):
        index = min(6, int(math.floor(i * step + 0.5)))
        if index not in chosen:
            chosen.append(index)

    for index in range(7):
        if len(chosen) >= count:
            break
        if index not in chosen:
            chosen.append(index)

    chosen = set(sorted(chosen)[:count])
    return [index in chosen for index in range(7)]


def build_day_slots(profile):
    """Seven day slots with training/rest flags and focus labels."""
    split = select_split(profile.experience_level, profile.training_days)
    pattern = distribute_training_days(profile.training_days)

    slots = []
    session = 0
    for key, is_training_day in zip(DAY_KEYS, pattern):
        if is_training_day:
            focus = split[session % len(split)]
            session += 1
        else:
            focus = REST_FOCUS
        slots.append({"key": key, "is_training_day": is_training_day, "focus": focus})
    return slots


def normalize_focus(label, default="Full Body"):
    """Map a free-text focus label onto one of the split table focuses."""
    if isinstance(label, (list, tuple)):
        label = " ".join(str(part) for part in label)
    text = str(label or "")
    for focus in FOCUSES:
        if text.strip().lower() == focus.lower():
            return focus
    for focus, pattern in FOCUS_PATTERNS:
        if pattern.search(text):
            return focus
    return default
