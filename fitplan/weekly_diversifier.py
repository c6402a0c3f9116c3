"""
Cap how often any single exercise recurs across the week.
"""

import copy

from fitplan.constraint_enforcer import day_focus, is_main_block
from fitplan.split_selector import DAY_KEYS


DEFAULT_CAP = 2


def _count(counts, name):
    return counts.get(name.lower(), 0)


def _pick_alternative(name, candidates, counts, day_names, cap):
    for candidate in candidates:
        key = candidate.lower()
        if key == name.lower() or key in day_names:
            continue
        if counts.get(key, 0) < cap:
            return candidate
    return None


def diversify_day(day_plan, counts, candidates, cap=DEFAULT_CAP):
    """
    Diversify one day given the counts accumulated so far.

    Returns:
        (new day plan, new counts, list of (old name, new name) swaps)
    """
    day_plan = copy.deepcopy(day_plan)
    counts = dict(counts)
    swaps = []

    blocks = [block for block in day_plan["workout"]["blocks"] if is_main_block(block)]
    day_names = {
        str(item.get("exercise") or "").lower()
        for block in blocks
        for item in block.get("items") or []
    }

    for block in blocks:
        for item in block.get("items") or []:
            name = str(item.get("exercise") or "")
            if _count(counts, name) >= cap:
                alternative = _pick_alternative(name, candidates, counts, day_names, cap)
                if alternative:
                    item["exercise"] = alternative
                    day_names.add(alternative.lower())
                    swaps.append((name, alternative))
                    name = alternative
            counts[name.lower()] = _count(counts, name) + 1
    return day_plan, counts, swaps


def diversify_week(document, candidates_for, cap=DEFAULT_CAP):
    """
    Fold over the seven days, capping main-block repeats of any exercise name.

    Args:
        document: validated plan document ({"days": {...}})
        candidates_for: callable focus -> ordered candidate names, already
            equipment and avoid-list filtered
        cap: maximum occurrences of one name across the week

    Returns:
        dict with "document" and "swaps" (list of {day, from, to})
    """
    result = copy.deepcopy(document)
    counts = {}
    swaps = []
    for day in DAY_KEYS:
        candidates = candidates_for(day_focus(result["days"][day]))
        day_plan, counts, day_swaps = diversify_day(result["days"][day], counts, candidates, cap)
        result["days"][day] = day_plan
        swaps.extend({"day": day, "from": old, "to": new} for old, new in day_swaps)
    return {"document": result, "swaps": swaps}
