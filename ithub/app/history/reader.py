import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ithub.app import db
from ithub.app.models.asset_history import AssetHistory, AssetKind, HistoryAction
from ithub.app.models.user import User, utcnow
from .exceptions import StoreReadFailure

logger = logging.getLogger(__name__)

PERIOD_DAYS = {'week': 7, 'month': 30}
PERIOD_LABELS = {'week': 'Last 7 days', 'month': 'Last 30 days'}

@dataclass
class HistoryReport:
    records: List[dict] = field(default_factory=list)
    counts_by_action: Dict[str, int] = field(
        default_factory=lambda: {a.value: 0 for a in HistoryAction})
    counts_by_asset_type: Dict[str, int] = field(
        default_factory=lambda: {k.value: 0 for k in AssetKind})
    daily_counts: List[Tuple[str, int]] = field(default_factory=list)
    period: dict = field(default_factory=lambda: {
        'type': 'week', 'startDate': PERIOD_LABELS['week'], 'endDate': 'Now'})

    @property
    def total(self):
        return sum(self.counts_by_action.values())

    def to_dict(self):
        return {
            'history': self.records,
            'byAction': [{'action': k, 'count': v} for k, v in self.counts_by_action.items()],
            'byAssetType': [{'asset_type': k, 'count': v} for k, v in self.counts_by_asset_type.items()],
            'daily': [{'date': d, 'count': c} for d, c in self.daily_counts],
            'total': self.total,
        }

def get_asset_history(asset_type, asset_id, limit=50, session=None):
    """Newest-first timeline of one asset, with the acting user's name when it still resolves."""
    session = session or db.session
    if isinstance(asset_type, AssetKind):
        asset_type = asset_type.value
    try:
        rows = (session.query(AssetHistory, User.name)
                .outerjoin(User, AssetHistory.changed_by == User.id)
                .filter(AssetHistory.asset_type == asset_type, AssetHistory.asset_id == asset_id)
                .order_by(AssetHistory.changed_at.desc(), AssetHistory.id.desc())
                .limit(limit)
                .all())
    except SQLAlchemyError as e:
        raise StoreReadFailure(f"Could not load history of {asset_type} #{asset_id}") from e
    return [entry.to_dict(changed_by_name=name) for entry, name in rows]

def _parse_bound(value, end=False):
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        parsed = value
    elif len(value) == 10:
        parsed = date.fromisoformat(value)
    else:
        return datetime.fromisoformat(value)
    # A bare end date covers that whole day
    return datetime.combine(parsed, time.max if end else time.min)

def resolve_window(period='week', start_date=None, end_date=None, now=None):
    """
    Turns the report parameters into ``(start, end, description)``.

    An explicit ``start_date``/``end_date`` pair wins over ``period``; a
    single bound on its own is ignored. A date-only ``end_date`` covers that
    whole day. Raises ValueError for dates that cannot be parsed.
    """
    if start_date and end_date:
        start = _parse_bound(start_date)
        end = _parse_bound(end_date, end=True)
        return start, end, {'type': 'custom', 'startDate': str(start_date), 'endDate': str(end_date)}

    now = now or utcnow()
    if period in PERIOD_DAYS:
        start = now - timedelta(days=PERIOD_DAYS[period])
        return start, None, {'type': period, 'startDate': PERIOD_LABELS[period], 'endDate': 'Now'}
    return None, None, {'type': period or 'all', 'startDate': None, 'endDate': 'Now'}

def _in_window(query, start, end):
    if start is not None:
        query = query.filter(AssetHistory.changed_at >= start)
    if end is not None:
        query = query.filter(AssetHistory.changed_at <= end)
    return query

def get_aggregate_history(period='week', start_date=None, end_date=None, limit=100, session=None,
                          now=None) -> HistoryReport:
    """
    Change activity over a time window, for the reports page.

    Never raises for store failures: the error is logged and an empty report
    comes back so the rest of the page can still render.
    """
    session = session or db.session
    start, end, period_info = resolve_window(period, start_date, end_date, now=now)
    report = HistoryReport(period=period_info)

    try:
        rows = (_in_window(session.query(AssetHistory, User.name)
                           .outerjoin(User, AssetHistory.changed_by == User.id), start, end)
                .order_by(AssetHistory.changed_at.desc(), AssetHistory.id.desc())
                .limit(limit)
                .all())
        by_action = _in_window(session.query(AssetHistory.action, func.count(AssetHistory.id)),
                               start, end).group_by(AssetHistory.action).all()
        by_type = _in_window(session.query(AssetHistory.asset_type, func.count(AssetHistory.id)),
                             start, end).group_by(AssetHistory.asset_type).all()
        day = func.date(AssetHistory.changed_at)
        daily = _in_window(session.query(day, func.count(AssetHistory.id)),
                           start, end).group_by(day).order_by(day.asc()).all()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Report query failed, returning empty history report")
        return HistoryReport(period=period_info)

    report.records = [entry.to_dict(changed_by_name=name) for entry, name in rows]
    report.counts_by_action.update({action: count for action, count in by_action})
    report.counts_by_asset_type.update({kind: count for kind, count in by_type})
    report.daily_counts = [(str(d), count) for d, count in daily]
    return report
