"""
Structural validation for weekly plan documents.
"""

import math

from fitplan.split_selector import DAY_KEYS


REQUIRED_DAY_SECTIONS = ["workout", "nutrition", "recovery"]


def _is_number(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _is_text(value):
    return isinstance(value, str) and bool(value.strip())


def _has_text(value):
    if _is_number(value):
        return True
    return _is_text(value)


def _add_violation(violations, code, message, day=None, path=None):
    violations.append(
        {
            "code": code,
            "message": message,
            "day": day or "",
            "path": path or "",
        }
    )


def _check_workout(violations, day, workout):
    if not isinstance(workout, dict):
        _add_violation(violations, "missing_workout", f"{day} has no workout.", day, f"{day}.workout")
        return

    focus = workout.get("focus")
    if not isinstance(focus, list) or not any(_is_text(item) for item in focus):
        _add_violation(violations, "missing_focus", f"{day} workout has no focus list.", day, f"{day}.workout.focus")

    blocks = workout.get("blocks")
    if not isinstance(blocks, list) or not blocks:
        _add_violation(violations, "missing_blocks", f"{day} workout has no blocks.", day, f"{day}.workout.blocks")
        return

    for b_index, block in enumerate(blocks):
        path = f"{day}.workout.blocks[{b_index}]"
        if not isinstance(block, dict):
            _add_violation(violations, "invalid_block", f"{path} is not an object.", day, path)
            continue
        if not _is_text(block.get("name")):
            _add_violation(violations, "block_missing_name", f"{path} has no name.", day, f"{path}.name")
        items = block.get("items")
        if not isinstance(items, list) or not items:
            _add_violation(violations, "block_missing_items", f"{path} has no items.", day, f"{path}.items")
            continue
        for i_index, item in enumerate(items):
            item_path = f"{path}.items[{i_index}]"
            if not isinstance(item, dict) or not _is_text(item.get("exercise")):
                _add_violation(
                    violations, "item_missing_exercise", f"{item_path} has no exercise name.", day, item_path
                )


def _check_nutrition(violations, day, nutrition):
    if not isinstance(nutrition, dict):
        _add_violation(violations, "missing_nutrition", f"{day} has no nutrition.", day, f"{day}.nutrition")
        return

    for field in ["total_kcal", "protein_g"]:
        if not _is_number(nutrition.get(field)):
            _add_violation(
                violations, "invalid_total", f"{day} nutrition.{field} is not numeric.", day, f"{day}.nutrition.{field}"
            )

    meals = nutrition.get("meals")
    if not isinstance(meals, list) or not meals:
        _add_violation(violations, "missing_meals", f"{day} nutrition has no meals.", day, f"{day}.nutrition.meals")
        return

    for m_index, meal in enumerate(meals):
        path = f"{day}.nutrition.meals[{m_index}]"
        if not isinstance(meal, dict):
            _add_violation(violations, "invalid_meal", f"{path} is not an object.", day, path)
            continue
        if not _is_text(meal.get("name")):
            _add_violation(violations, "meal_missing_name", f"{path} has no name.", day, f"{path}.name")
        items = meal.get("items")
        if not isinstance(items, list) or not items:
            _add_violation(violations, "meal_missing_items", f"{path} has no items.", day, f"{path}.items")
            continue
        for i_index, item in enumerate(items):
            item_path = f"{path}.items[{i_index}]"
            if not isinstance(item, dict):
                _add_violation(violations, "invalid_meal_item", f"{item_path} is not an object.", day, item_path)
                continue
            if not _is_text(item.get("food")):
                _add_violation(violations, "item_missing_food", f"{item_path} has no food.", day, f"{item_path}.food")
            if not _has_text(item.get("qty")):
                _add_violation(
                    violations, "item_missing_qty", f"{item_path} has no quantity.", day, f"{item_path}.qty"
                )


def _check_recovery(violations, day, recovery):
    if not isinstance(recovery, dict):
        _add_violation(violations, "missing_recovery", f"{day} has no recovery.", day, f"{day}.recovery")
        return
    for field in ["mobility", "sleep"]:
        value = recovery.get(field)
        if not isinstance(value, list) or not any(_is_text(item) for item in value):
            _add_violation(
                violations, f"missing_{field}", f"{day} recovery.{field} is empty.", day, f"{day}.recovery.{field}"
            )


def validate_plan_document(document):
    """
    Check a plan document against the weekly plan schema.

    Never raises. The status is "ok" with no violations, "needs_repair" when
    at least one day is usable, and "unrecoverable" otherwise.

    Returns:
        dict with "status", "violations" (list of {code, message, day, path})
        and "summary"
    """
    violations = []

    days = document.get("days") if isinstance(document, dict) else None
    if not isinstance(days, dict):
        _add_violation(violations, "missing_days", "Document has no per-day mapping.", path="days")
        return {
            "status": "unrecoverable",
            "violations": violations,
            "summary": "Validation: no per-day mapping found.",
        }

    for key in days:
        if key not in DAY_KEYS:
            _add_violation(violations, "unknown_day", f"Unexpected day key '{key}'.", key, f"days.{key}")

    usable_days = 0
    for day in DAY_KEYS:
        if day not in days:
            _add_violation(violations, "missing_day", f"{day} is missing.", day, day)
            continue
        plan = days[day]
        if not isinstance(plan, dict):
            _add_violation(violations, "invalid_day", f"{day} is not an object.", day, day)
            continue
        if any(isinstance(plan.get(section), dict) for section in REQUIRED_DAY_SECTIONS):
            usable_days += 1

        _check_workout(violations, day, plan.get("workout"))
        _check_nutrition(violations, day, plan.get("nutrition"))
        _check_recovery(violations, day, plan.get("recovery"))
        if not _is_text(plan.get("reason")):
            _add_violation(violations, "missing_reason", f"{day} has no reason.", day, f"{day}.reason")

    if not violations:
        status = "ok"
    elif usable_days:
        status = "needs_repair"
    else:
        status = "unrecoverable"

    summary = f"Validation: {len(DAY_KEYS)} days checked, {len(violations)} violation(s)."
    return {
        "status": status,
        "violations": violations,
        "summary": summary,
    }
