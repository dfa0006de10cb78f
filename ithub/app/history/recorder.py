import json
import logging
from datetime import date, time
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from ithub.app import db
from ithub.app.models.asset_history import AssetHistory, AssetKind, HistoryAction
from .compare import FieldChange
from .exceptions import InvalidActionKind, StoreWriteFailure

logger = logging.getLogger(__name__)

SINGLE_ROW_ACTIONS = frozenset({HistoryAction.CREATE.value, HistoryAction.DELETE.value,
                                HistoryAction.DISPOSE.value})

def _json_default(value):
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")

def serialize_value(value):
    """Text form of a field value; strings are kept as they are."""
    if isinstance(value, str):
        return value
    return json.dumps(value, default=_json_default, sort_keys=True, ensure_ascii=False)

def _as_change(entry):
    if isinstance(entry, FieldChange):
        return entry
    # Plain mappings as produced by JSON payloads
    return FieldChange(
        field=entry['field'],
        old_value=entry.get('old_value', entry.get('oldValue')),
        new_value=entry.get('new_value', entry.get('newValue')),
    )

def _normalize(enum_cls, value, label):
    if isinstance(value, enum_cls):
        return value.value
    if any(value == m.value for m in enum_cls):
        return value
    raise InvalidActionKind(f"Unknown {label}: {value!r}")

def record_history(asset_type, asset_id, action, changes=None, *, user_id, ip_address=None,
                   user_agent=None, session=None):
    """
    Append the audit rows for one asset mutation.

    ``create``, ``delete`` and ``dispose`` write a single row without field
    details. ``update`` writes one row per entry of ``changes`` (see
    :func:`compare_records`) inside a savepoint, so either every row of the
    call is kept or none is; an empty ``changes`` writes nothing.

    Rows are flushed but not committed: the caller's transaction decides,
    which keeps the entity write and its audit rows together.

    Returns the number of rows written.
    """
    session = session or db.session
    asset_type = _normalize(AssetKind, asset_type, 'asset type')
    action = _normalize(HistoryAction, action, 'action')

    base = dict(
        asset_type=asset_type,
        asset_id=asset_id,
        action=action,
        changed_by=user_id,
        ip_address=ip_address or None,
        user_agent=(user_agent or None) and user_agent[:500],
    )

    if action in SINGLE_ROW_ACTIONS:
        try:
            session.add(AssetHistory(**base))
            session.flush()
        except SQLAlchemyError as e:
            raise StoreWriteFailure(f"Could not record {action} of {asset_type} #{asset_id}") from e
        logger.info("History: %s %s #%s by user %s", action, asset_type, asset_id, user_id)
        return 1

    if not changes:
        return 0

    changes = [_as_change(c) for c in changes]
    try:
        with session.begin_nested():
            for change in changes:
                session.add(AssetHistory(
                    field_name=change.field,
                    old_value=serialize_value(change.old_value),
                    new_value=serialize_value(change.new_value),
                    **base
                ))
                session.flush()
    except (SQLAlchemyError, TypeError, ValueError) as e:
        raise StoreWriteFailure(
            f"Could not record update of {asset_type} #{asset_id}; no field changes were kept"
        ) from e

    logger.info("History: update %s #%s by user %s (%d fields: %s)", asset_type, asset_id, user_id,
                len(changes), ', '.join(c.field for c in changes))
    return len(changes)
