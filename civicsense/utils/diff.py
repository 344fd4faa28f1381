from enum import Enum


def _plain(v):
    return v.value if isinstance(v, Enum) else v


def diff_lists(old: list, new: list):
    old_set = {_plain(v) for v in old or []}
    new_set = {_plain(v) for v in new or []}

    return {
        "added": sorted(new_set - old_set),
        "removed": sorted(old_set - new_set),
    }


def diff_fields(before: dict, after: dict, fields) -> dict:
    changes = {}
    for field in fields:
        old, new = _plain(before.get(field)), _plain(after.get(field))
        if old != new:
            changes[field] = {"from": old, "to": new}
    return changes
