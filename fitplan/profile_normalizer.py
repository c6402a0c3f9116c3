"""
Profile normalization and derived daily targets.

Everything here is a pure function of the profile: identical input gives
identical targets, and missing anthropometrics fall back to population
means instead of failing.
"""

import math
import re


DEFAULT_WEIGHT_KG = 70.0
DEFAULT_HEIGHT_CM = 170.0
DEFAULT_AGE = 30
DEFAULT_SESSION_MINUTES = 60
DEFAULT_MEAL_COUNT = 3
DEFAULT_TRAINING_DAYS = 3

KCAL_PER_KG = 7700

SEX_CONSTANTS = {
    "male": 5,
    "female": -161,
}
# Midpoint of the two constants when sex is not given.
UNKNOWN_SEX_CONSTANT = -78

ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,
    "lightly_active": 1.375,
    "moderately_active": 1.55,
    "very_active": 1.725,
    "extra_active": 1.9,
}
DEFAULT_ACTIVITY = "moderately_active"

GOAL_MULTIPLIERS = {
    "fat_loss": 0.85,
    "muscle_gain": 1.10,
    "endurance": 1.0,
    "general": 1.0,
}

GOAL_ALIASES = {
    "fat_loss": ["fat_loss", "weight_loss", "lose_weight", "cut", "fatloss"],
    "muscle_gain": ["muscle_gain", "build_muscle", "bulk", "hypertrophy", "gain_muscle"],
    "endurance": ["endurance", "cardio", "stamina"],
    "general": ["general", "general_fitness", "maintenance", "flexibility_mobility", "health"],
}

LEVEL_ALIASES = {
    "beginner": ["beginner", "novice", "new"],
    "intermediate": ["intermediate"],
    "advanced": ["advanced", "professional", "expert", "elite"],
}

ACTIVITY_ALIASES = {
    "sedentary": ["sedentary"],
    "lightly_active": ["lightly", "light"],
    "moderately_active": ["moderately", "moderate"],
    "very_active": ["very"],
    "extra_active": ["extra", "extremely", "athlete"],
}

INTENSITY_HYDRATION_L_PER_HOUR = {
    "low": 0.35,
    "moderate": 0.5,
    "high": 0.75,
}
HYDRATION_BASE_L_PER_KG = 0.033
HYDRATION_MIN_L = 1.8
HYDRATION_MAX_L = 4.0

MEAL_NAMES = {
    1: ["Main Meal"],
    2: ["First Meal", "Second Meal"],
    3: ["Breakfast", "Lunch", "Dinner"],
    4: ["Breakfast", "Lunch", "Afternoon Snack", "Dinner"],
    5: ["Breakfast", "Morning Snack", "Lunch", "Afternoon Snack", "Dinner"],
    6: ["Breakfast", "Morning Snack", "Lunch", "Afternoon Snack", "Dinner", "Evening Snack"],
    7: [
        "Breakfast", "Mid-Morning", "Lunch", "Afternoon Snack",
        "Post-Workout", "Dinner", "Before Bed",
    ],
    8: [
        "Breakfast", "Snack 1", "Lunch", "Snack 2",
        "Pre-Workout", "Post-Workout", "Dinner", "Before Bed",
    ],
}

VEGAN_RE = re.compile(r"\b(vegan|plant[\s_-]*based)\b", re.IGNORECASE)
VEGETARIAN_RE = re.compile(r"\bvegetarian\b", re.IGNORECASE)
EGG_INCLUSIVE_RE = re.compile(r"\b(eggitarian|egg[\s_-]*inclusive|ovo)\b", re.IGNORECASE)

EQUIPMENT_TIER_PATTERNS = [
    ("gym", re.compile(r"\b(gym|barbell|machine|cable|full)\b", re.IGNORECASE)),
    ("dumbbells", re.compile(r"\b(dumbbells?|db|kettlebells?)\b", re.IGNORECASE)),
    ("bands", re.compile(r"\b(bands?|resistance)\b", re.IGNORECASE)),
]


def _slug(value):
    return re.sub(r"[^a-z0-9]+", "_", str(value or "").lower()).strip("_")


def _parse_float(value):
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _parse_int(value):
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return None


def _clamp(value, low, high):
    return max(low, min(high, value))


def _as_list(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(item).strip() for item in value if str(item or "").strip()]


def _resolve_alias(value, aliases, default):
    slug = _slug(value)
    if not slug:
        return default
    for canonical, names in aliases.items():
        if slug in names:
            return canonical
    for canonical, names in aliases.items():
        if any(name in slug for name in names):
            return canonical
    return default


def _pick(raw, *keys):
    for key in keys:
        if key in raw and raw[key] not in (None, ""):
            return raw[key]
    return None


class Profile:
    """Normalized, read-only view of a user's fitness profile."""

    def __init__(
        self,
        goal="general",
        experience_level="beginner",
        weight_kg=None,
        height_cm=None,
        age=None,
        sex=None,
        activity_level=DEFAULT_ACTIVITY,
        equipment=None,
        dietary_preferences=None,
        avoid_exercises=None,
        preferred_exercises=None,
        training_days=DEFAULT_TRAINING_DAYS,
        session_minutes=DEFAULT_SESSION_MINUTES,
        meal_count=DEFAULT_MEAL_COUNT,
        supplements=None,
        goal_weight_kg=None,
        daily_calorie_target=None,
    ):
        self.goal = _resolve_alias(goal, GOAL_ALIASES, "general")
        self.experience_level = _resolve_alias(experience_level, LEVEL_ALIASES, "beginner")

        weight = _parse_float(weight_kg)
        height = _parse_float(height_cm)
        years = _parse_int(age)
        self.weight_kg = weight if weight and weight > 0 else DEFAULT_WEIGHT_KG
        self.height_cm = height if height and height > 0 else DEFAULT_HEIGHT_CM
        self.age = years if years and years > 0 else DEFAULT_AGE

        sex_slug = _slug(sex)
        if sex_slug in ("male", "m", "man"):
            self.sex = "male"
        elif sex_slug in ("female", "f", "woman"):
            self.sex = "female"
        else:
            self.sex = None

        self.activity_level = _resolve_alias(activity_level, ACTIVITY_ALIASES, DEFAULT_ACTIVITY)
        self.equipment = tuple(_as_list(equipment))
        self.dietary_preferences = tuple(_as_list(dietary_preferences))
        self.avoid_exercises = tuple(_as_list(avoid_exercises))
        self.preferred_exercises = tuple(_as_list(preferred_exercises))

        days = _parse_int(training_days)
        self.training_days = _clamp(days if days is not None else DEFAULT_TRAINING_DAYS, 1, 7)
        minutes = _parse_int(session_minutes)
        self.session_minutes = minutes if minutes and minutes > 0 else DEFAULT_SESSION_MINUTES
        meals = _parse_int(meal_count)
        self.meal_count = _clamp(meals if meals is not None else DEFAULT_MEAL_COUNT, 1, 8)

        self.supplements = tuple(_as_list(supplements))
        goal_weight = _parse_float(goal_weight_kg)
        self.goal_weight_kg = goal_weight if goal_weight and goal_weight > 0 else None
        override = _parse_int(daily_calorie_target)
        self.daily_calorie_target = override if override and override > 0 else None

    @classmethod
    def from_dict(cls, raw):
        """Build a profile from a raw mapping (snake_case or camelCase keys)."""
        raw = raw or {}
        return cls(
            goal=_pick(raw, "goal", "primaryGoal", "primary_goal"),
            experience_level=_pick(raw, "experience_level", "experienceLevel", "fitness_level", "level"),
            weight_kg=_pick(raw, "weight_kg", "weight", "weightKg"),
            height_cm=_pick(raw, "height_cm", "height", "heightCm"),
            age=_pick(raw, "age"),
            sex=_pick(raw, "sex", "gender"),
            activity_level=_pick(raw, "activity_level", "activityLevel"),
            equipment=_pick(raw, "equipment", "available_equipment"),
            dietary_preferences=_pick(raw, "dietary_preferences", "dietaryPreferences", "diet", "dietType"),
            avoid_exercises=_pick(raw, "avoid_exercises", "avoidExercises", "injuries"),
            preferred_exercises=_pick(raw, "preferred_exercises", "preferredExercises"),
            training_days=_pick(raw, "training_days", "trainingDays", "workout_days", "workoutFrequency"),
            session_minutes=_pick(raw, "session_minutes", "sessionMinutes", "session_length", "workoutDuration"),
            meal_count=_pick(raw, "meal_count", "mealCount", "meals_per_day", "mealsPerDay"),
            supplements=_pick(raw, "supplements", "supplementPreferences"),
            goal_weight_kg=_pick(raw, "goal_weight_kg", "goalWeight", "target_weight"),
            daily_calorie_target=_pick(raw, "daily_calorie_target", "dailyCalorieTarget"),
        )

    def to_dict(self):
        return {
            "goal": self.goal,
            "experience_level": self.experience_level,
            "weight_kg": self.weight_kg,
            "height_cm": self.height_cm,
            "age": self.age,
            "sex": self.sex,
            "activity_level": self.activity_level,
            "equipment": list(self.equipment),
            "dietary_preferences": list(self.dietary_preferences),
            "avoid_exercises": list(self.avoid_exercises),
            "preferred_exercises": list(self.preferred_exercises),
            "training_days": self.training_days,
            "session_minutes": self.session_minutes,
            "meal_count": self.meal_count,
            "supplements": list(self.supplements),
            "goal_weight_kg": self.goal_weight_kg,
            "daily_calorie_target": self.daily_calorie_target,
        }


def diet_tier(profile):
    """Most restrictive diet tier named by the profile's preferences."""
    prefs = " ".join(profile.dietary_preferences)
    if VEGAN_RE.search(prefs):
        return "vegan"
    if VEGETARIAN_RE.search(prefs):
        return "vegetarian"
    if EGG_INCLUSIVE_RE.search(prefs):
        return "egg_inclusive"
    return "omnivore"


def equipment_tier(profile):
    """Richest equipment tier the profile has access to."""
    available = " ".join(profile.equipment)
    for tier, pattern in EQUIPMENT_TIER_PATTERNS:
        if pattern.search(available):
            return tier
    return "bodyweight"


def calculate_bmr(profile):
    """Mifflin-St Jeor resting energy expenditure in kcal."""
    constant = SEX_CONSTANTS.get(profile.sex, UNKNOWN_SEX_CONSTANT)
    return 10 * profile.weight_kg + 6.25 * profile.height_cm - 5 * profile.age + constant


def maintenance_calories(profile):
    return calculate_bmr(profile) * ACTIVITY_MULTIPLIERS[profile.activity_level]


def infer_intensity(profile):
    if profile.experience_level == "advanced" or profile.goal == "endurance":
        return "high"
    if profile.experience_level == "intermediate" or profile.goal in ("fat_loss", "muscle_gain"):
        return "moderate"
    return "low"


def calculate_hydration(profile):
    baseline = HYDRATION_BASE_L_PER_KG * profile.weight_kg
    session_hours = profile.session_minutes / 60.0
    training_share = profile.training_days / 7.0
    additive = INTENSITY_HYDRATION_L_PER_HOUR[infer_intensity(profile)] * session_hours * training_share
    return round(_clamp(baseline + additive, HYDRATION_MIN_L, HYDRATION_MAX_L), 1)


def derive_targets(profile):
    """
    Compute the energy, protein and hydration targets for a profile.

    Returns:
        dict with energy_kcal (int), protein_g (int) and hydration_l (float)
    """
    if profile.daily_calorie_target:
        energy = profile.daily_calorie_target
    else:
        energy = int(round(maintenance_calories(profile) * GOAL_MULTIPLIERS[profile.goal]))

    protein_per_kg = 2.2 if profile.goal == "muscle_gain" else 1.8
    protein = int(round(profile.weight_kg * protein_per_kg))

    return {
        "energy_kcal": energy,
        "protein_g": protein,
        "hydration_l": calculate_hydration(profile),
    }


def meal_names_for(count):
    """Display names for a day with the given number of meals (clamped to 1-8)."""
    count = _clamp(_parse_int(count) or DEFAULT_MEAL_COUNT, 1, 8)
    return list(MEAL_NAMES[count])


def estimate_weeks_to_goal(profile, targets):
    """Weeks to reach goal weight at the targeted energy delta, or None."""
    if profile.goal_weight_kg is None:
        return None
    weight_delta = profile.goal_weight_kg - profile.weight_kg
    daily_delta = targets["energy_kcal"] - maintenance_calories(profile)
    if abs(weight_delta) < 0.1 or abs(daily_delta) < 1:
        return None
    # Losing weight needs a deficit, gaining needs a surplus.
    if (weight_delta < 0) != (daily_delta < 0):
        return None
    weeks = abs(weight_delta) * KCAL_PER_KG / (abs(daily_delta) * 7)
    return max(1, int(round(weeks)))
