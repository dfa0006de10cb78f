from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Any, List, Mapping

# Managed by the store, never audit-worthy
SKIPPED_FIELDS = frozenset({'created_at', 'updated_at', 'createdAt', 'updatedAt'})

# Compared by value; anything else (dicts, lists, objects) by identity
SCALAR_TYPES = (str, int, float, bool, Decimal, date, time, type(None))

_MISSING = object()

@dataclass(frozen=True)
class FieldChange:
    field: str
    old_value: Any
    new_value: Any

def values_differ(old, new):
    if old is _MISSING:
        return True
    if not isinstance(old, SCALAR_TYPES) or not isinstance(new, SCALAR_TYPES):
        return old is not new
    # bool is an int subclass: True vs 1 is still a change
    if isinstance(old, bool) or isinstance(new, bool):
        return type(old) is not type(new) or old != new
    if _is_number(old) and _is_number(new):
        return old != new
    return type(old) is not type(new) or old != new

def _is_number(value):
    return isinstance(value, (int, float, Decimal))

def compare_records(old_record: Mapping[str, Any], new_record: Mapping[str, Any]) -> List[FieldChange]:
    """
    Lists the fields of ``new_record`` whose value differs from ``old_record``.

    Only the keys of ``new_record`` are considered, in their order, so a field
    that was left out of an edit is never reported. Store-managed timestamps
    are skipped. Values must match in type as well as value; nested
    structures are compared by identity, not contents.
    """
    changes = []
    for key, new_value in new_record.items():
        if key in SKIPPED_FIELDS:
            continue
        old_value = old_record.get(key, _MISSING)
        if values_differ(old_value, new_value):
            changes.append(FieldChange(
                field=key,
                old_value=None if old_value is _MISSING else old_value,
                new_value=new_value,
            ))
    return changes
