"""
Asset CRUD with audit trail.

Every mutation runs as one unit of work: the entity write and its history
rows are committed together or rolled back together.
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Integer, case, func, or_

from ithub.app import db
from ithub.app.history import compare_records, record_history
from ithub.app.models import ASSET_MODELS, NetworkIp, Pc, Printer, Server, Software

logger = logging.getLogger(__name__)

class AssetError(Exception):
    pass

class AssetNotFound(AssetError):
    pass

class ValidationError(AssetError):
    pass

_TRUE_STRINGS = {'1', 'true', 'yes', 'on'}
_FALSE_STRINGS = {'0', 'false', 'no', 'off'}

@contextmanager
def unit_of_work(session=None):
    session = session or db.session
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise

def get_model(kind):
    try:
        return ASSET_MODELS[getattr(kind, 'value', kind)]
    except KeyError:
        raise AssetNotFound(f"Unknown asset type: {kind}")

def get_asset(kind, asset_id):
    model = get_model(kind)
    asset = db.session.get(model, asset_id)
    if asset is None:
        raise AssetNotFound(f"{model.__name__} #{asset_id} not found")
    return asset

def _coerce(column, value):
    if isinstance(value, str):
        value = value.strip()
        if value == '':
            return None
    if value is None:
        return None
    column_type = column.type
    if isinstance(column_type, Boolean):
        if isinstance(value, bool):
            return value
        text = str(value).lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise ValueError(f"expected a boolean, got {value!r}")
    if isinstance(column_type, Integer):
        if isinstance(value, bool):
            raise ValueError(f"expected a number, got {value!r}")
        return int(value)
    if isinstance(column_type, DateTime):
        return value if isinstance(value, datetime) else datetime.fromisoformat(value)
    if isinstance(column_type, Date):
        if isinstance(value, date):
            return value
        return date.fromisoformat(value[:10])
    return value

def clean_payload(model, data):
    """Keep the editable fields of ``data`` in payload order, converted to their column types."""
    values = {}
    for name in data:
        if name not in model.EDITABLE_FIELDS:
            continue
        try:
            values[name] = _coerce(model.__table__.columns[name], data[name])
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid value for {name}: {data[name]!r}")
    return values

def _check_required(model, values, partial=False):
    if partial:
        # An edit may leave fields out but must not blank a mandatory one
        missing = [name for name, value in values.items()
                   if value is None and not model.__table__.columns[name].nullable]
    else:
        missing = [f for f in model.REQUIRED_FIELDS if values.get(f) is None]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

def _check_unique(model, values, exclude_id=None):
    for name in ('asset_number', 'serial_number', 'ip_address'):
        column = model.__table__.columns.get(name)
        if column is None or not column.unique or values.get(name) is None:
            continue
        query = model.query.filter(getattr(model, name) == values[name])
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        existing = query.first()
        if existing is not None:
            if model is NetworkIp:
                raise ValidationError(
                    f"IP address {values[name]} is already in use "
                    f"(assigned: {existing.assigned_device or 'unassigned'})")
            raise ValidationError(f"{name.replace('_', ' ').capitalize()} {values[name]} already exists")

def _apply(asset, values):
    try:
        for name, value in values.items():
            setattr(asset, name, value)
        asset.check()
    except ValueError as e:
        raise ValidationError(str(e))

def create_asset(kind, data, user_id, ip_address=None, user_agent=None):
    model = get_model(kind)
    values = {k: v for k, v in clean_payload(model, data).items() if v is not None}
    _check_required(model, values)
    _check_unique(model, values)

    with unit_of_work() as session:
        asset = model()
        _apply(asset, values)
        asset.created_by = asset.updated_by = user_id
        session.add(asset)
        session.flush()  # Flush to get the asset ID
        record_history(model.KIND, asset.id, 'create', user_id=user_id,
                       ip_address=ip_address, user_agent=user_agent, session=session)
    logger.info("Created %s #%s", model.KIND.value, asset.id)
    return asset

def update_asset(kind, asset_id, data, user_id, ip_address=None, user_agent=None):
    """
    Apply an edit and record one history row per changed field.

    Returns ``(asset, changes)``. An edit that changes nothing writes nothing.
    """
    asset = get_asset(kind, asset_id)
    model = type(asset)
    values = clean_payload(model, data)
    _check_required(model, values, partial=True)
    _check_unique(model, values, exclude_id=asset.id)

    before = asset.to_dict()
    with unit_of_work() as session:
        _apply(asset, values)
        # Diff what the validators stored, not the raw payload
        after = asset.to_dict()
        changes = compare_records(before, {name: after[name] for name in values})
        if changes:
            asset.updated_by = user_id
            record_history(model.KIND, asset.id, 'update', changes, user_id=user_id,
                           ip_address=ip_address, user_agent=user_agent, session=session)
    return asset, changes

def dispose_asset(kind, asset_id, user_id, ip_address=None, user_agent=None):
    """
    Retire an asset without removing its row.

    Network IPs are deactivated and logged as ``delete``; every other kind
    moves to the ``disposed`` status and is logged as ``dispose``.
    """
    asset = get_asset(kind, asset_id)
    model = type(asset)
    if not asset.is_active_asset():
        raise ValidationError(f"{model.__name__} #{asset_id} is already retired")

    with unit_of_work() as session:
        if model is NetworkIp:
            asset.is_active = False
            action = 'delete'
        else:
            asset.status = model.DISPOSED_STATUS
            action = 'dispose'
        asset.updated_by = user_id
        record_history(model.KIND, asset.id, action, user_id=user_id,
                       ip_address=ip_address, user_agent=user_agent, session=session)
    return asset

def list_assets(kind, page=1, per_page=20, search=None, filters=None):
    model = get_model(kind)
    query = model.query

    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(*[getattr(model, f).ilike(pattern) for f in model.SEARCH_FIELDS]))

    for name, value in (filters or {}).items():
        if name not in model.FILTER_FIELDS or value in (None, ''):
            continue
        try:
            value = _coerce(model.__table__.columns[name], value)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid value for {name}: {value!r}")
        query = query.filter(getattr(model, name) == value)

    return query.order_by(model.order_column()).paginate(page=page, per_page=per_page, error_out=False)

def find_duplicate_ip(ip_address, exclude_id=None):
    """The active allocation already holding ``ip_address``, if any."""
    return (NetworkIp.query
            .filter(NetworkIp.ip_address == ip_address,
                    NetworkIp.id != (exclude_id or 0),
                    NetworkIp.is_active.is_(True))
            .first())

def summarize_assets():
    """Total and in-service counts for every asset kind."""
    active_conditions = {
        Pc: Pc.status.in_(['assigned', 'in_stock']),
        Server: Server.status == 'active',
        Printer: Printer.status == 'active',
        NetworkIp: NetworkIp.is_active.is_(True),
        Software: Software.status == 'active',
    }
    summary = {}
    for model, condition in active_conditions.items():
        total, active = db.session.query(
            func.count(model.id),
            func.coalesce(func.sum(case((condition, 1), else_=0)), 0),
        ).one()
        summary[model.KIND.value] = {'total': total, 'active': int(active)}
    return summary

def status_distribution(kind):
    model = get_model(kind)
    rows = db.session.query(model.status, func.count(model.id)).group_by(model.status).all()
    return [{'status': status, 'count': count} for status, count in rows]
