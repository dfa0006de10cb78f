# app/history/__init__.py
from .compare import FieldChange, compare_records
from .exceptions import ChangeTrackerError, InvalidActionKind, StoreReadFailure, StoreWriteFailure
from .reader import HistoryReport, get_aggregate_history, get_asset_history
from .recorder import record_history, serialize_value

__all__ = ['FieldChange', 'compare_records', 'ChangeTrackerError', 'InvalidActionKind',
    'StoreReadFailure', 'StoreWriteFailure', 'HistoryReport', 'get_aggregate_history',
    'get_asset_history', 'record_history', 'serialize_value']
