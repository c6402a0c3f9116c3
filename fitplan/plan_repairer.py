"""
Local, non-destructive repair of mostly-valid plan documents.

Missing days are rebuilt from the average totals of the days that are
present; missing pieces inside a day are filled with minimal defaults.
Nothing that exists in the input is dropped, except keys that are not day
labels at all.
"""

import copy
import math
import re

from fitplan.knowledge_base import get_knowledge_base
from fitplan.plan_validator import validate_plan_document
from fitplan.split_selector import DAY_KEYS, REST_FOCUS


NUMBER_RE = re.compile(r"-?\d+(?:[.,]\d+)*")

GENERIC_FOOD = "Mixed vegetables"
GENERIC_QTY = "1 serving"
GENERIC_MOBILITY = ["Gentle full-body stretching, 10 min"]
GENERIC_SLEEP = ["Aim for 7-9 hours of sleep"]
REST_REASON = "Rest and recovery day so your body can adapt to the week's training."
TRAINING_REASON = "{focus} session to keep the week balanced and moving toward your goal."


def _is_finite(number):
    try:
        return math.isfinite(number)
    except OverflowError:
        return False


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and _is_finite(value)


def _coerce_number(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if _is_finite(value) else None
    match = NUMBER_RE.search(str(value or ""))
    if not match:
        return None
    try:
        number = float(match.group(0).replace(",", ""))
    except ValueError:
        return None
    if not _is_finite(number):
        return None
    return int(number) if number.is_integer() else number


def _is_text(value):
    return isinstance(value, str) and bool(value.strip())


def _as_text_list(value):
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item or "").strip()]
    return []


def _slot_map(slots):
    mapping = {key: {"key": key, "is_training_day": True, "focus": "Full Body"} for key in DAY_KEYS}
    for slot in slots or []:
        mapping[slot["key"]] = slot
    return mapping


def _mean(values, default):
    try:
        mean = sum(values) / len(values)
    except (ZeroDivisionError, OverflowError):
        return default
    return int(round(mean)) if _is_finite(mean) else default


def average_totals(days, targets):
    """Average numeric kcal/protein across the days present, else the targets."""
    kcal_values = []
    protein_values = []
    for key in DAY_KEYS:
        plan = days.get(key)
        nutrition = plan.get("nutrition") if isinstance(plan, dict) else None
        if not isinstance(nutrition, dict):
            continue
        kcal = _coerce_number(nutrition.get("total_kcal"))
        protein = _coerce_number(nutrition.get("protein_g"))
        if kcal:
            kcal_values.append(kcal)
        if protein:
            protein_values.append(protein)

    return _mean(kcal_values, targets["energy_kcal"]), _mean(protein_values, targets["protein_g"])


def _generic_exercise(slot, knowledge_base):
    defaults = knowledge_base.safe_defaults(slot["focus"])
    return defaults[0] if defaults else "Bird Dog"


def _generic_item(slot, knowledge_base):
    if not slot["is_training_day"]:
        return {"exercise": "Brisk Walk", "sets": 1, "reps": "20-30 min", "RIR": 4}
    return {"exercise": _generic_exercise(slot, knowledge_base), "sets": 3, "reps": "10-12", "RIR": 2}


def _generic_block(slot, knowledge_base):
    name = "Main" if slot["is_training_day"] else "Active Recovery"
    return {"name": name, "items": [_generic_item(slot, knowledge_base)]}


def _generic_meal(name="Main Meal"):
    return {"name": name, "items": [{"food": GENERIC_FOOD, "qty": GENERIC_QTY}]}


def _template_workout(slot, knowledge_base):
    focus = slot["focus"] if slot["is_training_day"] else REST_FOCUS
    return {
        "focus": [focus],
        "blocks": [_generic_block(slot, knowledge_base)],
        "notes": "Keep the effort comfortable and focus on clean technique.",
    }


def _template_nutrition(kcal, protein, hydration):
    return {
        "total_kcal": kcal,
        "protein_g": protein,
        "meals": [_generic_meal()],
        "hydration_l": hydration,
    }


def _template_recovery():
    return {"mobility": list(GENERIC_MOBILITY), "sleep": list(GENERIC_SLEEP)}


def _default_reason(slot):
    if not slot["is_training_day"]:
        return REST_REASON
    return TRAINING_REASON.format(focus=slot["focus"])


def synthesize_day(slot, kcal, protein, hydration, knowledge_base):
    """Minimal complete day for a slot, keyed by whether it is a rest day."""
    return {
        "workout": _template_workout(slot, knowledge_base),
        "nutrition": _template_nutrition(kcal, protein, hydration),
        "recovery": _template_recovery(),
        "reason": _default_reason(slot),
    }


def _repair_workout(workout, slot, day, repaired, knowledge_base):
    if not isinstance(workout, dict):
        repaired.append(f"{day}.workout")
        return _template_workout(slot, knowledge_base)

    focus = workout.get("focus")
    if isinstance(focus, str) and focus.strip():
        workout["focus"] = [focus.strip()]
        repaired.append(f"{day}.workout.focus")
    elif not isinstance(focus, list) or not any(_is_text(item) for item in focus):
        workout["focus"] = [slot["focus"]]
        repaired.append(f"{day}.workout.focus")

    blocks = workout.get("blocks")
    if not isinstance(blocks, list) or not blocks:
        workout["blocks"] = [_generic_block(slot, knowledge_base)]
        repaired.append(f"{day}.workout.blocks")
        blocks = workout["blocks"]

    for b_index, block in enumerate(blocks):
        path = f"{day}.workout.blocks[{b_index}]"
        if not isinstance(block, dict):
            blocks[b_index] = _generic_block(slot, knowledge_base)
            repaired.append(path)
            continue
        if not _is_text(block.get("name")):
            block["name"] = "Main" if b_index == 0 else f"Block {b_index + 1}"
            repaired.append(f"{path}.name")
        items = block.get("items")
        if not isinstance(items, list) or not items:
            block["items"] = [_generic_item(slot, knowledge_base)]
            repaired.append(f"{path}.items")
            continue
        for i_index, item in enumerate(items):
            if not isinstance(item, dict):
                items[i_index] = _generic_item(slot, knowledge_base)
                repaired.append(f"{path}.items[{i_index}]")
            elif not _is_text(item.get("exercise")):
                item["exercise"] = _generic_item(slot, knowledge_base)["exercise"]
                repaired.append(f"{path}.items[{i_index}].exercise")

    if "notes" not in workout:
        workout["notes"] = ""
    return workout


def _repair_nutrition(nutrition, day, kcal, protein, hydration, repaired):
    if not isinstance(nutrition, dict):
        repaired.append(f"{day}.nutrition")
        return _template_nutrition(kcal, protein, hydration)

    for field, fallback in [("total_kcal", kcal), ("protein_g", protein)]:
        value = nutrition.get(field)
        if _is_number(value):
            continue
        coerced = _coerce_number(value)
        nutrition[field] = coerced if coerced is not None else fallback
        repaired.append(f"{day}.nutrition.{field}")

    if _coerce_number(nutrition.get("hydration_l")) is None:
        nutrition["hydration_l"] = hydration

    meals = nutrition.get("meals")
    if not isinstance(meals, list) or not meals:
        nutrition["meals"] = [_generic_meal()]
        repaired.append(f"{day}.nutrition.meals")
        return nutrition

    for m_index, meal in enumerate(meals):
        path = f"{day}.nutrition.meals[{m_index}]"
        if not isinstance(meal, dict):
            meals[m_index] = _generic_meal(f"Meal {m_index + 1}")
            repaired.append(path)
            continue
        if not _is_text(meal.get("name")):
            meal["name"] = f"Meal {m_index + 1}"
            repaired.append(f"{path}.name")
        items = meal.get("items")
        if not isinstance(items, list) or not items:
            meal["items"] = [{"food": GENERIC_FOOD, "qty": GENERIC_QTY}]
            repaired.append(f"{path}.items")
            continue
        for i_index, item in enumerate(items):
            item_path = f"{path}.items[{i_index}]"
            if not isinstance(item, dict):
                items[i_index] = {"food": GENERIC_FOOD, "qty": GENERIC_QTY}
                repaired.append(item_path)
                continue
            if not _is_text(item.get("food")):
                item["food"] = GENERIC_FOOD
                repaired.append(f"{item_path}.food")
            qty = item.get("qty")
            if _is_number(qty):
                continue
            if not _is_text(qty):
                item["qty"] = GENERIC_QTY
                repaired.append(f"{item_path}.qty")
    return nutrition


def _repair_recovery(recovery, day, repaired):
    if not isinstance(recovery, dict):
        repaired.append(f"{day}.recovery")
        return _template_recovery()
    for field, fallback in [("mobility", GENERIC_MOBILITY), ("sleep", GENERIC_SLEEP)]:
        values = _as_text_list(recovery.get(field))
        if values != recovery.get(field):
            repaired.append(f"{day}.recovery.{field}")
        recovery[field] = values or list(fallback)
    return recovery


def repair_plan_document(document, report, slots, targets, knowledge_base=None):
    """
    Attempt local repair of a document given its validation report.

    The input document is never mutated. An already-valid document is
    returned unchanged.

    Returns:
        dict with "document", "status" ("ok" or "unrepairable"),
        "repaired" (list of field paths) and "report" (re-validation report)
    """
    if report["status"] == "ok":
        return {"document": document, "status": "ok", "repaired": [], "report": report}
    if report["status"] == "unrecoverable":
        return {"document": document, "status": "unrepairable", "repaired": [], "report": report}

    knowledge_base = knowledge_base or get_knowledge_base()
    repaired = []
    result = copy.deepcopy(document)
    days = result.get("days")

    for key in list(days):
        if key not in DAY_KEYS:
            del days[key]
            repaired.append(key)

    slot_by_key = _slot_map(slots)
    kcal, protein = average_totals(days, targets)
    hydration = targets["hydration_l"]

    rebuilt = {}
    for day in DAY_KEYS:
        slot = slot_by_key[day]
        plan = days.get(day)
        if not isinstance(plan, dict):
            rebuilt[day] = synthesize_day(slot, kcal, protein, hydration, knowledge_base)
            repaired.append(day)
            continue

        plan["workout"] = _repair_workout(plan.get("workout"), slot, day, repaired, knowledge_base)
        plan["nutrition"] = _repair_nutrition(plan.get("nutrition"), day, kcal, protein, hydration, repaired)
        plan["recovery"] = _repair_recovery(plan.get("recovery"), day, repaired)
        if not _is_text(plan.get("reason")):
            plan["reason"] = _default_reason(slot)
            repaired.append(f"{day}.reason")
        rebuilt[day] = plan

    result["days"] = rebuilt
    new_report = validate_plan_document(result)
    status = "ok" if new_report["status"] == "ok" else "unrepairable"
    return {"document": result, "status": status, "repaired": repaired, "report": new_report}
