"""
Rough per-item energy/protein estimates from a small per-100g food table.
"""

import re


QTY_RE = re.compile(
    r"(\d+(?:\.\d+)?)\s*(kg|g|grams?|oz|cups?|tbsp|tsp|slices?|pieces?|eggs?|ml|l|scoops?|servings?)?\b",
    re.IGNORECASE,
)

GRAMS_PER_UNIT = {
    "kg": 1000,
    "g": 1,
    "gram": 1,
    "grams": 1,
    "oz": 28.35,
    "cup": 240,
    "cups": 240,
    "tbsp": 15,
    "tsp": 5,
    "slice": 30,
    "slices": 30,
    "piece": 100,
    "pieces": 100,
    "egg": 50,
    "eggs": 50,
    "ml": 1,
    "l": 1000,
    "scoop": 30,
    "scoops": 30,
    "serving": 100,
    "servings": 100,
}

# kcal and protein (g) per 100 g
FOOD_TABLE = {
    "chicken": (165, 31),
    "chicken breast": (165, 31),
    "turkey": (135, 30),
    "beef": (250, 26),
    "steak": (271, 26),
    "salmon": (208, 20),
    "tuna": (132, 29),
    "fish": (150, 25),
    "shrimp": (99, 24),
    "egg": (155, 13),
    "egg whites": (52, 11),
    "tofu": (76, 8),
    "tempeh": (192, 20),
    "soy chunks": (345, 52),
    "paneer": (265, 18),
    "cottage cheese": (98, 11),
    "greek yogurt": (59, 10),
    "yogurt": (61, 3.5),
    "whey protein": (120, 24),
    "pea protein": (120, 24),
    "soy drink": (33, 3.3),
    "chia pudding": (130, 4),
    "protein shake": (150, 25),
    "lentil": (116, 9),
    "dal": (116, 9),
    "rajma": (127, 8.7),
    "chickpea": (164, 8.9),
    "roasted chickpeas": (364, 19),
    "rice": (130, 2.7),
    "brown rice": (112, 2.6),
    "quinoa": (120, 4.4),
    "oats": (389, 17),
    "oatmeal": (68, 2.4),
    "pasta": (131, 5),
    "noodles": (138, 4.5),
    "bread": (265, 9),
    "toast": (247, 13),
    "roti": (297, 11),
    "potato": (77, 2),
    "sweet potato": (86, 1.6),
    "banana": (89, 1.1),
    "apple": (52, 0.3),
    "orange": (47, 0.9),
    "berries": (57, 0.7),
    "avocado": (160, 2),
    "olive oil": (884, 0),
    "nuts": (607, 20),
    "almonds": (579, 21),
    "peanut butter": (588, 25),
    "cheese": (402, 25),
    "broccoli": (34, 2.8),
    "spinach": (23, 2.9),
    "cucumber": (15, 0.7),
    "salad": (20, 1.5),
    "vegetables": (30, 2),
    "milk": (42, 3.4),
}
DEFAULT_PER_100G = (150, 8)
DEFAULT_GRAMS = 100


def parse_quantity_grams(qty):
    """Approximate grams for a quantity string like '150g', '2 slices' or '1 cup'."""
    match = QTY_RE.search(str(qty or ""))
    if not match:
        return DEFAULT_GRAMS
    amount = float(match.group(1))
    unit = (match.group(2) or "g").lower()
    return amount * GRAMS_PER_UNIT.get(unit, 1)


def _lookup(food):
    name = str(food or "").lower()
    best_key = None
    for key in FOOD_TABLE:
        if key in name and (best_key is None or len(key) > len(best_key)):
            best_key = key
    return FOOD_TABLE[best_key] if best_key else DEFAULT_PER_100G


def estimate_item_macros(food, qty):
    """Estimated {"kcal", "protein_g"} for one meal item, or None without a food name."""
    if not str(food or "").strip():
        return None
    kcal_per_100, protein_per_100 = _lookup(food)
    multiplier = parse_quantity_grams(qty) / 100.0
    return {
        "kcal": int(round(kcal_per_100 * multiplier)),
        "protein_g": int(round(protein_per_100 * multiplier)),
    }
