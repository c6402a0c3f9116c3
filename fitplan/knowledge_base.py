"""
Static exercise and food knowledge base.

Single source of truth for exercise pools, meal templates, food swaps and
recovery text. Pipeline components only reach these tables through the
KnowledgeBase lookups, so tables can be extended (in code or through
knowledge_overrides.yaml) without touching any caller.
"""

import copy
import os
import re
import yaml


EQUIPMENT_TIERS = ["bodyweight", "bands", "dumbbells", "gym"]

# ---------------------------------------------------------------------------
# Exercise pools: focus -> equipment tier -> ordered exercise names
# ---------------------------------------------------------------------------
RECOVERY_POOL = [
    "Brisk Walk",
    "Cat-Cow",
    "World's Greatest Stretch",
    "Hip 90/90 Switches",
    "Thoracic Rotations",
    "Child's Pose",
    "Foam Rolling",
]

EXERCISE_TABLE = {
    "Push": {
        "gym": [
            "Barbell Bench Press", "Incline Dumbbell Press", "Seated Overhead Press",
            "Machine Chest Press", "Cable Fly", "Triceps Rope Pushdown", "Lateral Raise", "Dips",
        ],
        "dumbbells": [
            "Dumbbell Bench Press", "Incline Dumbbell Press", "Dumbbell Shoulder Press",
            "Dumbbell Fly", "Dumbbell Lateral Raise", "Overhead Dumbbell Triceps Extension", "Push-ups",
        ],
        "bands": [
            "Band Chest Press", "Banded Push-ups", "Band Overhead Press", "Band Lateral Raise",
            "Band Triceps Pushdown", "Pike Push-ups", "Bench Dips",
        ],
        "bodyweight": [
            "Push-ups", "Incline Push-ups", "Pike Push-ups", "Decline Push-ups",
            "Bench Dips", "Diamond Push-ups", "Plank Shoulder Taps",
        ],
    },
    "Pull": {
        "gym": [
            "Lat Pulldown", "Barbell Row", "Seated Cable Row", "Pull-ups",
            "Face Pull", "Barbell Curl", "Chest-Supported Machine Row", "Hammer Curl",
        ],
        "dumbbells": [
            "One-Arm Dumbbell Row", "Dumbbell Pullover", "Dumbbell Reverse Fly", "Dumbbell Hammer Curl",
            "Dumbbell Biceps Curl", "Renegade Row", "Dumbbell Shrug",
        ],
        "bands": [
            "Band Row", "Band Straight-Arm Pulldown", "Band Face Pull", "Band Pull-Aparts",
            "Band Biceps Curl", "Inverted Row", "Superman Hold",
        ],
        "bodyweight": [
            "Inverted Row", "Pull-ups", "Chin-ups", "Superman Hold",
            "Prone Y-T-W Raise", "Towel Row", "Reverse Snow Angels",
        ],
    },
    "Legs": {
        "gym": [
            "Barbell Back Squat", "Romanian Deadlift", "Leg Press", "Walking Lunges",
            "Leg Curl Machine", "Standing Calf Raise", "Hip Thrust", "Leg Extension Machine",
        ],
        "dumbbells": [
            "Goblet Squat", "Dumbbell Romanian Deadlift", "Dumbbell Walking Lunges", "Bulgarian Split Squat",
            "Dumbbell Step-ups", "Dumbbell Calf Raise", "Dumbbell Hip Thrust",
        ],
        "bands": [
            "Banded Squat", "Band Good Morning", "Banded Glute Bridge", "Reverse Lunges",
            "Band Lateral Walk", "Single-Leg Calf Raise", "Split Squat",
        ],
        "bodyweight": [
            "Bodyweight Squat", "Reverse Lunges", "Glute Bridge", "Bulgarian Split Squat",
            "Step-ups", "Wall Sit", "Single-Leg Calf Raise",
        ],
    },
    "Upper": {
        "gym": [
            "Barbell Bench Press", "Lat Pulldown", "Seated Overhead Press", "Seated Cable Row",
            "Incline Dumbbell Press", "Face Pull", "Cable Biceps Curl", "Triceps Rope Pushdown",
        ],
        "dumbbells": [
            "Dumbbell Bench Press", "One-Arm Dumbbell Row", "Dumbbell Shoulder Press", "Dumbbell Reverse Fly",
            "Dumbbell Biceps Curl", "Overhead Dumbbell Triceps Extension", "Push-ups",
        ],
        "bands": [
            "Band Chest Press", "Band Row", "Band Overhead Press", "Band Face Pull",
            "Band Biceps Curl", "Band Triceps Pushdown", "Push-ups",
        ],
        "bodyweight": [
            "Push-ups", "Inverted Row", "Pike Push-ups", "Pull-ups",
            "Bench Dips", "Plank Shoulder Taps", "Superman Hold",
        ],
    },
    "Lower": {
        "gym": [
            "Barbell Back Squat", "Romanian Deadlift", "Leg Press", "Leg Curl Machine",
            "Walking Lunges", "Standing Calf Raise", "Hip Thrust",
        ],
        "dumbbells": [
            "Goblet Squat", "Dumbbell Romanian Deadlift", "Bulgarian Split Squat", "Dumbbell Step-ups",
            "Dumbbell Hip Thrust", "Dumbbell Calf Raise", "Dumbbell Walking Lunges",
        ],
        "bands": [
            "Banded Squat", "Band Good Morning", "Banded Glute Bridge", "Split Squat",
            "Band Lateral Walk", "Reverse Lunges", "Single-Leg Calf Raise",
        ],
        "bodyweight": [
            "Bodyweight Squat", "Glute Bridge", "Reverse Lunges", "Step-ups",
            "Wall Sit", "Single-Leg Glute Bridge", "Single-Leg Calf Raise",
        ],
    },
    "Full Body": {
        "gym": [
            "Barbell Deadlift", "Barbell Bench Press", "Barbell Back Squat", "Lat Pulldown",
            "Seated Overhead Press", "Seated Cable Row", "Walking Lunges", "Cable Woodchop",
        ],
        "dumbbells": [
            "Dumbbell Thruster", "Goblet Squat", "One-Arm Dumbbell Row", "Dumbbell Bench Press",
            "Dumbbell Romanian Deadlift", "Dumbbell Shoulder Press", "Dumbbell Swing",
        ],
        "bands": [
            "Banded Squat", "Band Row", "Band Chest Press", "Band Good Morning",
            "Band Overhead Press", "Reverse Lunges", "Mountain Climbers",
        ],
        "bodyweight": [
            "Bodyweight Squat", "Push-ups", "Inverted Row", "Reverse Lunges",
            "Glute Bridge", "Pike Push-ups", "Mountain Climbers", "Plank",
        ],
    },
    "Conditioning": {
        "gym": [
            "Rowing Machine Intervals", "Assault Bike Sprints", "Sled Push", "Battle Ropes",
            "Treadmill Incline Walk", "Kettlebell Swing", "Box Jumps",
        ],
        "dumbbells": [
            "Dumbbell Swing", "Dumbbell Thruster", "Renegade Row", "Burpees",
            "Jump Squats", "Mountain Climbers", "Farmer Carry",
        ],
        "bands": [
            "Band Resisted Sprints", "Burpees", "Jump Squats", "Mountain Climbers",
            "High Knees", "Skater Hops", "Band Woodchop",
        ],
        "bodyweight": [
            "Burpees", "Jump Squats", "Mountain Climbers", "High Knees",
            "Skater Hops", "Jumping Jacks", "Bear Crawl",
        ],
    },
    "Recovery": {tier: list(RECOVERY_POOL) for tier in EQUIPMENT_TIERS},
}

# Names containing these terms need equipment above the given tier.
EQUIPMENT_TERMS = {
    "bands": ["band"],
    "dumbbells": ["dumbbell", "kettlebell", "goblet", "renegade", "farmer carry"],
    "gym": [
        "barbell", "machine", "cable", "smith", "leg press", "lat pulldown",
        "sled", "assault bike", "treadmill", "ez-bar", "pec deck", "hack squat", "t-bar",
    ],
}

# ---------------------------------------------------------------------------
# Movement categories for curated replacements
# ---------------------------------------------------------------------------
CATEGORY_SYNONYMS = [
    ("vertical_pull", ["pulldown", "pull-up", "pullup", "chin-up", "chinup", "pullover"]),
    ("horizontal_pull", ["row", "face pull", "pull-apart", "reverse fly", "y-t-w", "snow angel"]),
    ("vertical_push", ["overhead", "shoulder press", "military", "pike", "arnold", "lateral raise"]),
    ("horizontal_push", ["bench", "chest press", "incline", "floor press", "push-up", "pushup", "fly", "dip"]),
    ("hinge", ["deadlift", "rdl", "good morning", "hip thrust", "bridge", "swing", "hyperextension"]),
    ("squat", ["squat", "lunge", "leg press", "step-up", "split", "leg extension", "wall sit", "calf"]),
    ("arms", ["curl", "triceps", "pushdown", "skull", "extension", "shrug"]),
    ("core", ["plank", "crunch", "woodchop", "dead bug", "twist", "hollow", "sit-up", "superman"]),
    ("conditioning", [
        "burpee", "sprint", "jump", "climber", "rope", "sled", "bike", "rowing",
        "jacks", "knees", "hops", "crawl", "carry", "run", "walk",
    ]),
]

REPLACEMENTS = {
    "squat": {
        "gym": ["Leg Press", "Goblet Squat", "Hip Thrust"],
        "dumbbells": ["Goblet Squat", "Dumbbell Step-ups", "Dumbbell Hip Thrust"],
        "bands": ["Banded Glute Bridge", "Band Lateral Walk", "Split Squat"],
        "bodyweight": ["Glute Bridge", "Step-ups", "Wall Sit"],
    },
    "hinge": {
        "gym": ["Hip Thrust", "Leg Curl Machine", "Back Extension"],
        "dumbbells": ["Dumbbell Hip Thrust", "Dumbbell Romanian Deadlift", "Glute Bridge"],
        "bands": ["Banded Glute Bridge", "Band Good Morning", "Bird Dog"],
        "bodyweight": ["Glute Bridge", "Single-Leg Glute Bridge", "Bird Dog"],
    },
    "horizontal_push": {
        "gym": ["Machine Chest Press", "Incline Dumbbell Press", "Cable Fly"],
        "dumbbells": ["Dumbbell Floor Press", "Dumbbell Fly", "Incline Push-ups"],
        "bands": ["Band Chest Press", "Incline Push-ups", "Wall Push-ups"],
        "bodyweight": ["Incline Push-ups", "Wall Push-ups", "Knee Push-ups"],
    },
    "vertical_push": {
        "gym": ["Landmine Press", "Machine Shoulder Press", "Cable Lateral Raise"],
        "dumbbells": ["Half-Kneeling Dumbbell Press", "Dumbbell Lateral Raise", "Dumbbell Front Raise"],
        "bands": ["Band Overhead Press", "Band Lateral Raise", "Wall Slides"],
        "bodyweight": ["Wall Slides", "Incline Pike Push-ups", "Prone Y-T-W Raise"],
    },
    "horizontal_pull": {
        "gym": ["Chest-Supported Machine Row", "Seated Cable Row", "Face Pull"],
        "dumbbells": ["Chest-Supported Dumbbell Row", "Dumbbell Reverse Fly", "One-Arm Dumbbell Row"],
        "bands": ["Band Row", "Band Face Pull", "Band Pull-Aparts"],
        "bodyweight": ["Inverted Row", "Towel Row", "Prone Y-T-W Raise"],
    },
    "vertical_pull": {
        "gym": ["Lat Pulldown", "Assisted Pull-up Machine", "Straight-Arm Cable Pulldown"],
        "dumbbells": ["Dumbbell Pullover", "One-Arm Dumbbell Row", "Dumbbell Reverse Fly"],
        "bands": ["Band Straight-Arm Pulldown", "Band Row", "Band Pull-Aparts"],
        "bodyweight": ["Inverted Row", "Superman Hold", "Reverse Snow Angels"],
    },
    "arms": {
        "gym": ["Cable Biceps Curl", "Triceps Rope Pushdown", "Hammer Curl"],
        "dumbbells": ["Dumbbell Hammer Curl", "Overhead Dumbbell Triceps Extension", "Dumbbell Biceps Curl"],
        "bands": ["Band Biceps Curl", "Band Triceps Pushdown", "Band Hammer Curl"],
        "bodyweight": ["Bench Dips", "Diamond Push-ups", "Towel Curl"],
    },
    "core": {
        "gym": ["Cable Woodchop", "Pallof Press", "Dead Bug"],
        "dumbbells": ["Dumbbell Side Bend", "Dead Bug", "Side Plank"],
        "bands": ["Band Pallof Press", "Dead Bug", "Side Plank"],
        "bodyweight": ["Dead Bug", "Side Plank", "Bird Dog"],
    },
    "conditioning": {
        "gym": ["Stationary Bike Intervals", "Rowing Machine Intervals", "Incline Walk"],
        "dumbbells": ["Farmer Carry", "Dumbbell Swing", "Marching in Place"],
        "bands": ["Marching in Place", "Step Jacks", "Shadow Boxing"],
        "bodyweight": ["Marching in Place", "Step Jacks", "Shadow Boxing"],
    },
}

SAFE_DEFAULTS = {
    "Push": ["Incline Push-ups", "Wall Push-ups"],
    "Pull": ["Superman Hold", "Prone Y-T-W Raise"],
    "Legs": ["Glute Bridge", "Wall Sit"],
    "Lower": ["Glute Bridge", "Wall Sit"],
    "Upper": ["Incline Push-ups", "Superman Hold"],
    "Full Body": ["Glute Bridge", "Bird Dog"],
    "Conditioning": ["Marching in Place", "Brisk Walk"],
    "Recovery": ["Brisk Walk", "Cat-Cow"],
}
GENERIC_SAFE_EXERCISES = ["Bird Dog", "Dead Bug", "Diaphragmatic Breathing"]

WARMUPS = {
    "upper": ["Arm Circles", "Scapular Push-ups", "Thoracic Rotations"],
    "lower": ["Leg Swings", "Hip Circles", "Bodyweight Good Morning"],
    "full": ["Jumping Jacks", "Inchworms", "Hip Circles"],
    "conditioning": ["Light Jog in Place", "Leg Swings", "Arm Circles"],
    "recovery": ["Diaphragmatic Breathing", "Neck Rolls"],
}

COOLDOWNS = {
    "upper": ["Doorway Chest Stretch", "Cross-Body Shoulder Stretch"],
    "lower": ["Standing Quad Stretch", "Seated Hamstring Stretch"],
    "full": ["Child's Pose", "Supine Twist"],
    "conditioning": ["Easy Walk", "Calf Stretch"],
    "recovery": ["Box Breathing", "Legs-Up-the-Wall"],
}

FOCUS_GROUPS = {
    "Push": "upper",
    "Pull": "upper",
    "Upper": "upper",
    "Legs": "lower",
    "Lower": "lower",
    "Full Body": "full",
    "Conditioning": "conditioning",
    "Recovery": "recovery",
}

# ---------------------------------------------------------------------------
# Recovery text: several deterministic options per focus group
# ---------------------------------------------------------------------------
RECOVERY_TEMPLATES = {
    "lower": {
        "mobility": [
            ["Hip flexor stretch, 2 x 30s per side", "Pigeon pose, 60s per side", "Ankle rocks, 10 per side"],
            ["Couch stretch, 45s per side", "Hamstring floss, 10 per side", "Deep squat hold, 60s"],
            ["Foam roll quads and glutes, 5 min", "90/90 hip switches, 8 per side", "Calf stretch, 30s per side"],
        ],
    },
    "upper": {
        "mobility": [
            ["Doorway pec stretch, 2 x 30s", "Thread the needle, 8 per side", "Wall slides, 10 reps"],
            ["Thoracic extension on foam roller, 2 min", "Sleeper stretch, 30s per side", "Child's pose reach, 60s"],
            ["Cross-body shoulder stretch, 30s per side", "Open books, 8 per side", "Neck mobility circles, 60s"],
        ],
    },
    "general": {
        "mobility": [
            ["World's greatest stretch, 5 per side", "Cat-cow, 10 reps", "Hip circles, 10 per side"],
            ["Inchworm walkouts, 6 reps", "Supine twist, 30s per side", "Deep squat hold, 45s"],
            ["Full-body foam roll, 6 min", "Downward dog to cobra, 8 reps", "Ankle circles, 10 per side"],
        ],
    },
    "rest": {
        "mobility": [
            ["Easy 20-30 min walk", "Gentle full-body stretching, 10 min", "Diaphragmatic breathing, 5 min"],
            ["Light yoga flow, 15 min", "Foam roll major muscle groups, 8 min", "Legs-up-the-wall, 5 min"],
            ["Leisure cycling or swim, 20 min", "Hip and thoracic mobility circuit, 10 min", "Box breathing, 5 min"],
        ],
    },
}

SLEEP_TEMPLATES = {
    "high": [
        ["Aim for 8-9 hours after hard sessions", "Keep the bedroom cool and dark", "No screens 45 min before bed"],
        ["Target 8+ hours to support recovery", "Keep a consistent wake-up time", "Avoid caffeine after 2 pm"],
    ],
    "moderate": [
        ["Aim for 7-9 hours of sleep", "Keep a consistent bedtime", "Dim lights an hour before bed"],
        ["Target 7.5-8 hours tonight", "Wind down with light reading", "Avoid heavy meals late in the evening"],
    ],
    "low": [
        ["Aim for 7-8 hours of sleep", "Keep a regular sleep schedule", "Limit screens before bed"],
        ["Target at least 7 hours", "Get morning daylight exposure", "Keep caffeine to the morning"],
    ],
}

CARE_NOTES = [
    "Check in with how your joints feel and scale load if anything is sore.",
    "Take 5 minutes for slow breathing to bring stress down after the day.",
    "Hydrate steadily through the day rather than all at once.",
    "Note your energy and sleep quality to spot trends across the week.",
]

SUPPLEMENT_TIMING = [
    (re.compile(r"whey|protein|casein", re.IGNORECASE),
     "Within 30 minutes after training; with breakfast on rest days"),
    (re.compile(r"creatine", re.IGNORECASE), "5 g daily at any time; consistency matters more than timing"),
    (re.compile(r"pre[\s-]*workout|caffeine", re.IGNORECASE),
     "20-30 minutes before training; skip on rest days"),
    (re.compile(r"vitamin|multi|omega|fish oil|magnesium|zinc", re.IGNORECASE), "With breakfast"),
]
DEFAULT_SUPPLEMENT_TIMING = "As directed on the label"

GOAL_SUPPLEMENT_ADD_ONS = {
    "fat_loss": [{"name": "Electrolytes", "timing": "During longer or hotter sessions"}],
    "muscle_gain": [{"name": "Creatine monohydrate", "timing": "5 g daily at any time"}],
    "endurance": [{"name": "Electrolytes", "timing": "During sessions longer than 60 minutes"}],
    "general": [{"name": "Vitamin D3", "timing": "With breakfast if sun exposure is low"}],
}

# ---------------------------------------------------------------------------
# Foods
# ---------------------------------------------------------------------------
MEAT_TOKENS = [
    "chicken", "beef", "pork", "lamb", "mutton", "turkey", "bacon", "ham", "steak",
    "sausage", "meat", "veal", "duck", "venison", "salami", "pepperoni", "jerky",
]
FISH_TOKENS = [
    "fish", "salmon", "tuna", "cod", "tilapia", "shrimp", "prawn", "crab", "lobster",
    "seafood", "sardine", "mackerel", "anchov", "scallop", "oyster", "mussel",
]
EGG_TOKENS = ["egg", "omelet", "omelette", "frittata"]
# "butter" is left out so nut butters stay allowed.
DAIRY_TOKENS = ["paneer", "yogurt", "yoghurt", "cheese", "whey", "casein", "ghee", "curd", "milk", "cream"]

FORBIDDEN_FOOD_TOKENS = {
    "vegan": MEAT_TOKENS + FISH_TOKENS + EGG_TOKENS + DAIRY_TOKENS,
    "vegetarian": MEAT_TOKENS + FISH_TOKENS + EGG_TOKENS,
    "egg_inclusive": MEAT_TOKENS + FISH_TOKENS,
    "omnivore": [],
}

FOOD_SWAPS = {
    "vegan": {
        "chicken": "Grilled tofu",
        "turkey": "Soy chunks",
        "beef": "Tempeh",
        "steak": "Tempeh",
        "pork": "Tempeh",
        "lamb": "Rajma",
        "mutton": "Rajma",
        "bacon": "Smoked tempeh",
        "ham": "Smoked tempeh",
        "sausage": "Soy chunks",
        "fish": "Tofu",
        "salmon": "Tofu",
        "tuna": "Chickpea salad",
        "shrimp": "Tofu",
        "prawn": "Tofu",
        "seafood": "Tofu",
        "egg": "Scrambled tofu",
        "omelet": "Scrambled tofu",
        "omelette": "Scrambled tofu",
        "frittata": "Scrambled tofu",
        "paneer": "Tofu",
        "yogurt": "Chia pudding",
        "yoghurt": "Chia pudding",
        "cheese": "Tofu",
        "whey": "Pea protein shake",
        "casein": "Pea protein shake",
        "ghee": "Olive oil",
        "curd": "Chia pudding",
        "milk": "Fortified soy drink",
        "cream": "Cashew sauce",
        "_default": "Tofu",
    },
    "vegetarian": {
        "chicken": "Grilled tofu",
        "turkey": "Soy chunks",
        "beef": "Tempeh",
        "steak": "Tempeh",
        "pork": "Tempeh",
        "lamb": "Rajma",
        "mutton": "Rajma",
        "bacon": "Smoked tempeh",
        "ham": "Smoked tempeh",
        "sausage": "Soy chunks",
        "fish": "Paneer",
        "salmon": "Paneer",
        "tuna": "Chickpea salad",
        "shrimp": "Tofu",
        "prawn": "Tofu",
        "seafood": "Tofu",
        "egg": "Scrambled tofu",
        "omelet": "Scrambled tofu",
        "omelette": "Scrambled tofu",
        "frittata": "Scrambled tofu",
        "_default": "Paneer",
    },
    "egg_inclusive": {
        "chicken": "Egg whites",
        "turkey": "Boiled eggs",
        "beef": "Tempeh",
        "steak": "Tempeh",
        "pork": "Tempeh",
        "lamb": "Rajma",
        "mutton": "Rajma",
        "bacon": "Scrambled eggs",
        "ham": "Boiled eggs",
        "sausage": "Soy chunks",
        "fish": "Paneer",
        "salmon": "Paneer",
        "tuna": "Egg salad",
        "shrimp": "Tofu",
        "prawn": "Tofu",
        "seafood": "Tofu",
        "_default": "Boiled eggs",
    },
    "omnivore": {
        "_default": "Chicken breast",
    },
}

PLACEHOLDER_FOOD_KINDS = {
    "lean protein": "protein",
    "protein": "protein",
    "protein source": "protein",
    "quality protein": "protein",
    "high protein food": "protein",
    "complex carbs": "carb",
    "complex carbohydrates": "carb",
    "carbs": "carb",
    "carb source": "carb",
    "whole grains": "carb",
    "healthy fats": "fat",
    "healthy fat": "fat",
    "fat source": "fat",
    "vegetables": "veg",
    "veggies": "veg",
    "greens": "veg",
    "fruit": "fruit",
    "fruits": "fruit",
    "snack": "snack",
    "healthy snack": "snack",
    "food": "snack",
    "item": "snack",
    "tbd": "snack",
}
PLACEHOLDER_FOOD_RE = re.compile(r"^(food|item|meal|ingredient)\s*\d+$", re.IGNORECASE)

PLACEHOLDER_RESOLUTION = {
    "vegan": {
        "protein": {"food": "Tofu", "qty": "150g"},
        "carb": {"food": "Brown rice", "qty": "150g cooked"},
        "fat": {"food": "Almonds", "qty": "20g"},
        "veg": {"food": "Mixed vegetables", "qty": "150g"},
        "fruit": {"food": "Apple", "qty": "1 piece"},
        "snack": {"food": "Roasted chickpeas", "qty": "40g"},
    },
    "vegetarian": {
        "protein": {"food": "Paneer", "qty": "100g"},
        "carb": {"food": "Brown rice", "qty": "150g cooked"},
        "fat": {"food": "Almonds", "qty": "20g"},
        "veg": {"food": "Mixed vegetables", "qty": "150g"},
        "fruit": {"food": "Apple", "qty": "1 piece"},
        "snack": {"food": "Roasted chickpeas", "qty": "40g"},
    },
    "egg_inclusive": {
        "protein": {"food": "Boiled eggs", "qty": "3 pieces"},
        "carb": {"food": "Brown rice", "qty": "150g cooked"},
        "fat": {"food": "Almonds", "qty": "20g"},
        "veg": {"food": "Mixed vegetables", "qty": "150g"},
        "fruit": {"food": "Apple", "qty": "1 piece"},
        "snack": {"food": "Greek yogurt", "qty": "150g"},
    },
    "omnivore": {
        "protein": {"food": "Chicken breast", "qty": "150g"},
        "carb": {"food": "Brown rice", "qty": "150g cooked"},
        "fat": {"food": "Almonds", "qty": "20g"},
        "veg": {"food": "Mixed vegetables", "qty": "150g"},
        "fruit": {"food": "Apple", "qty": "1 piece"},
        "snack": {"food": "Greek yogurt", "qty": "150g"},
    },
}

PLACEHOLDER_QTYS = {"", "as needed", "to taste", "amount", "tbd", "n/a", "na", "some", "-", "?", "portion"}
DEFAULT_QTY = "1 serving"

MEAL_TEMPLATES = {
    "vegan": {
        "breakfast": [
            {"food": "Oats", "qty": "60g"},
            {"food": "Peanut butter", "qty": "20g"},
            {"food": "Banana", "qty": "1 piece"},
        ],
        "lunch": [
            {"food": "Tofu", "qty": "150g"},
            {"food": "Brown rice", "qty": "150g cooked"},
            {"food": "Mixed vegetables", "qty": "150g"},
        ],
        "dinner": [
            {"food": "Lentil dal", "qty": "1 cup"},
            {"food": "Quinoa", "qty": "150g cooked"},
            {"food": "Spinach", "qty": "100g"},
        ],
        "snack": [
            {"food": "Roasted chickpeas", "qty": "40g"},
            {"food": "Almonds", "qty": "20g"},
        ],
    },
    "vegetarian": {
        "breakfast": [
            {"food": "Oats", "qty": "60g"},
            {"food": "Greek yogurt", "qty": "150g"},
            {"food": "Mixed berries", "qty": "100g"},
        ],
        "lunch": [
            {"food": "Paneer", "qty": "100g"},
            {"food": "Brown rice", "qty": "150g cooked"},
            {"food": "Mixed vegetables", "qty": "150g"},
        ],
        "dinner": [
            {"food": "Tofu", "qty": "150g"},
            {"food": "Quinoa", "qty": "150g cooked"},
            {"food": "Spinach", "qty": "100g"},
        ],
        "snack": [
            {"food": "Roasted chickpeas", "qty": "40g"},
            {"food": "Apple", "qty": "1 piece"},
        ],
    },
    "egg_inclusive": {
        "breakfast": [
            {"food": "Boiled eggs", "qty": "3 pieces"},
            {"food": "Whole wheat toast", "qty": "2 slices"},
            {"food": "Banana", "qty": "1 piece"},
        ],
        "lunch": [
            {"food": "Paneer", "qty": "100g"},
            {"food": "Brown rice", "qty": "150g cooked"},
            {"food": "Mixed vegetables", "qty": "150g"},
        ],
        "dinner": [
            {"food": "Lentil dal", "qty": "1 cup"},
            {"food": "Whole wheat roti", "qty": "2 pieces"},
            {"food": "Cucumber salad", "qty": "100g"},
        ],
        "snack": [
            {"food": "Greek yogurt", "qty": "150g"},
            {"food": "Almonds", "qty": "20g"},
        ],
    },
    "omnivore": {
        "breakfast": [
            {"food": "Scrambled eggs", "qty": "3 pieces"},
            {"food": "Whole wheat toast", "qty": "2 slices"},
            {"food": "Banana", "qty": "1 piece"},
        ],
        "lunch": [
            {"food": "Chicken breast", "qty": "150g"},
            {"food": "Brown rice", "qty": "150g cooked"},
            {"food": "Broccoli", "qty": "100g"},
        ],
        "dinner": [
            {"food": "Salmon", "qty": "150g"},
            {"food": "Sweet potato", "qty": "200g"},
            {"food": "Mixed salad", "qty": "100g"},
        ],
        "snack": [
            {"food": "Greek yogurt", "qty": "150g"},
            {"food": "Almonds", "qty": "20g"},
        ],
    },
}

MEAL_PALETTES = {
    "vegan": [
        [
            {"food": "Rajma", "qty": "1 cup"},
            {"food": "Brown rice", "qty": "150g cooked"},
            {"food": "Cucumber salad", "qty": "100g"},
        ],
        [
            {"food": "Tofu stir-fry", "qty": "200g"},
            {"food": "Whole wheat noodles", "qty": "100g"},
        ],
        [
            {"food": "Tempeh", "qty": "100g"},
            {"food": "Sweet potato", "qty": "200g"},
            {"food": "Broccoli", "qty": "100g"},
        ],
    ],
    "vegetarian": [
        [
            {"food": "Rajma", "qty": "1 cup"},
            {"food": "Brown rice", "qty": "150g cooked"},
            {"food": "Cucumber salad", "qty": "100g"},
        ],
        [
            {"food": "Tofu stir-fry", "qty": "200g"},
            {"food": "Whole wheat noodles", "qty": "100g"},
        ],
        [
            {"food": "Cottage cheese", "qty": "150g"},
            {"food": "Whole wheat toast", "qty": "2 slices"},
            {"food": "Apple", "qty": "1 piece"},
        ],
    ],
    "egg_inclusive": [
        [
            {"food": "Vegetable omelette", "qty": "3 eggs"},
            {"food": "Whole wheat toast", "qty": "2 slices"},
        ],
        [
            {"food": "Rajma", "qty": "1 cup"},
            {"food": "Brown rice", "qty": "150g cooked"},
            {"food": "Cucumber salad", "qty": "100g"},
        ],
        [
            {"food": "Paneer tikka", "qty": "150g"},
            {"food": "Quinoa", "qty": "150g cooked"},
        ],
    ],
    "omnivore": [
        [
            {"food": "Turkey wrap", "qty": "1 piece"},
            {"food": "Mixed salad", "qty": "100g"},
        ],
        [
            {"food": "Lean beef stir-fry", "qty": "200g"},
            {"food": "Brown rice", "qty": "150g cooked"},
        ],
        [
            {"food": "Tuna salad", "qty": "150g"},
            {"food": "Whole wheat toast", "qty": "2 slices"},
            {"food": "Apple", "qty": "1 piece"},
        ],
    ],
}

DIET_TIERS = ["vegan", "vegetarian", "egg_inclusive", "omnivore"]


class KnowledgeBaseError(Exception):
    """A knowledge base table needed by the fallback generator is empty."""


def _normalize_text(value):
    return re.sub(r"\s+", " ", str(value or "").lower()).strip()


def meal_kind(meal_name):
    """Which meal template a named meal draws from."""
    name = _normalize_text(meal_name)
    if "breakfast" in name:
        return "breakfast"
    if "dinner" in name or "supper" in name or "second meal" in name:
        return "dinner"
    if "lunch" in name or "main meal" in name or "first meal" in name:
        return "lunch"
    return "snack"


class KnowledgeBase:
    """
    Read-only lookups over the exercise and food tables.

    Example:
        kb = KnowledgeBase()
        kb.exercises_for("Push", "dumbbells")  # -> ["Dumbbell Bench Press", ...]
        kb.meal_template_for("vegetarian")["lunch"]
    """

    def __init__(self, overrides_file="knowledge_overrides.yaml", exercise_table=None, meal_templates=None):
        self._exercises = copy.deepcopy(exercise_table if exercise_table is not None else EXERCISE_TABLE)
        self._meal_templates = copy.deepcopy(meal_templates if meal_templates is not None else MEAL_TEMPLATES)
        self._food_swaps = copy.deepcopy(FOOD_SWAPS)
        self._load_overrides(overrides_file)

    def _load_overrides(self, overrides_file):
        """Merge extra exercises and food swaps from a YAML file."""
        if not overrides_file or not os.path.exists(overrides_file):
            return
        try:
            with open(overrides_file, "r") as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            return

        for focus, tiers in (config.get("exercises") or {}).items():
            for tier, names in (tiers or {}).items():
                pool = self._exercises.setdefault(str(focus), {}).setdefault(str(tier), [])
                for name in names or []:
                    name = str(name).strip()
                    if name and name not in pool:
                        pool.append(name)

        for tier, swaps in (config.get("food_swaps") or {}).items():
            table = self._food_swaps.setdefault(str(tier), {})
            for token, replacement in (swaps or {}).items():
                if token and replacement:
                    table[_normalize_text(token)] = str(replacement).strip()

    def exercises_for(self, focus, tier):
        """Ordered exercise names for a focus at an equipment tier."""
        return list((self._exercises.get(focus) or {}).get(tier) or [])

    def meal_template_for(self, diet_tier):
        """Breakfast/lunch/dinner/snack item templates for a diet tier."""
        templates = self._meal_templates.get(diet_tier) or {}
        return {kind: copy.deepcopy(items) for kind, items in templates.items()}

    def meal_items_for(self, meal_name, diet_tier):
        """Template items for a named meal ("Breakfast", "Snack 1", ...)."""
        templates = self.meal_template_for(diet_tier)
        return templates.get(meal_kind(meal_name)) or templates.get("lunch") or []

    def palette_for(self, diet_tier):
        return copy.deepcopy(MEAL_PALETTES.get(diet_tier) or [])

    def forbidden_food_tokens(self, diet_tier):
        return list(FORBIDDEN_FOOD_TOKENS.get(diet_tier, []))

    def food_swap(self, token, diet_tier):
        table = self._food_swaps.get(diet_tier) or {}
        return table.get(_normalize_text(token)) or table.get("_default") or "Mixed vegetables"

    def placeholder_food(self, name, diet_tier):
        """Concrete {food, qty} for a generic placeholder name, or None."""
        key = _normalize_text(name)
        key = re.sub(r"^(some|a serving of|serving of)\s+", "", key)
        kind = PLACEHOLDER_FOOD_KINDS.get(key)
        if kind is None and (not key or PLACEHOLDER_FOOD_RE.match(key)):
            kind = "snack"
        if kind is None:
            return None
        resolution = PLACEHOLDER_RESOLUTION.get(diet_tier) or PLACEHOLDER_RESOLUTION["vegetarian"]
        return dict(resolution[kind])

    def is_placeholder_qty(self, qty):
        return _normalize_text(qty) in PLACEHOLDER_QTYS

    def equipment_terms_missing(self, tier):
        """Equipment terms that need more than the given tier provides."""
        if tier not in EQUIPMENT_TIERS:
            tier = "bodyweight"
        above = EQUIPMENT_TIERS[EQUIPMENT_TIERS.index(tier) + 1:]
        terms = []
        for level in above:
            terms.extend(EQUIPMENT_TERMS.get(level, []))
        return terms

    def movement_category(self, exercise_name):
        name = _normalize_text(exercise_name)
        for category, synonyms in CATEGORY_SYNONYMS:
            if any(synonym in name for synonym in synonyms):
                return category
        return None

    def replacements_for(self, category, tier):
        return list((REPLACEMENTS.get(category) or {}).get(tier) or [])

    def safe_defaults(self, focus):
        return list(SAFE_DEFAULTS.get(focus) or []) + list(GENERIC_SAFE_EXERCISES)

    def warmup_for(self, focus):
        return list(WARMUPS[FOCUS_GROUPS.get(focus, "full")])

    def cooldown_for(self, focus):
        return list(COOLDOWNS[FOCUS_GROUPS.get(focus, "full")])

    def recovery_templates(self, focus, is_training_day=True):
        if not is_training_day:
            group = "rest"
        else:
            group = {"upper": "upper", "lower": "lower"}.get(FOCUS_GROUPS.get(focus), "general")
        return copy.deepcopy(RECOVERY_TEMPLATES[group]["mobility"])

    def sleep_templates(self, intensity):
        return copy.deepcopy(SLEEP_TEMPLATES.get(intensity) or SLEEP_TEMPLATES["moderate"])

    def care_notes(self):
        return list(CARE_NOTES)

    def supplement_timing(self, supplement_name):
        for pattern, timing in SUPPLEMENT_TIMING:
            if pattern.search(supplement_name or ""):
                return timing
        return DEFAULT_SUPPLEMENT_TIMING

    def goal_supplement_add_ons(self, goal):
        return copy.deepcopy(GOAL_SUPPLEMENT_ADD_ONS.get(goal) or [])


# ---------------------------------------------------------------------------
# Module-level singleton for convenience
# ---------------------------------------------------------------------------
_default_knowledge_base = None


def get_knowledge_base(overrides_file="knowledge_overrides.yaml"):
    """Get or create the module-level singleton knowledge base."""
    global _default_knowledge_base
    if _default_knowledge_base is None:
        _default_knowledge_base = KnowledgeBase(overrides_file=overrides_file)
    return _default_knowledge_base


def reset_knowledge_base():
    """Reset the singleton (useful for testing)."""
    global _default_knowledge_base
    _default_knowledge_base = None
