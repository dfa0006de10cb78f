# app/routes/assets.py
import logging

from flask import current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from ithub.app.history import ChangeTrackerError, get_asset_history
from ithub.app.models import AssetKind
from ithub.app.routes import asset_blueprints, request_meta
from ithub.app.services.assets import (AssetNotFound, ValidationError, create_asset, dispose_asset,
                                       find_duplicate_ip, get_asset, list_assets, update_asset)

logger = logging.getLogger(__name__)

def _payload():
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    if not isinstance(data, dict):
        raise ValidationError('Expected a JSON object')
    return data

def _int_arg(name, default):
    try:
        return max(1, int(request.args.get(name, default)))
    except (TypeError, ValueError):
        return default

def _forbidden():
    return jsonify({'error': 'You do not have permission to perform this action.'}), 403

def register_asset_views(bp, kind):
    model_kind = kind.value

    @bp.errorhandler(ValidationError)
    def validation_failed(e):
        return jsonify({'error': str(e)}), 400

    @bp.errorhandler(AssetNotFound)
    def not_found(e):
        return jsonify({'error': str(e)}), 404

    @bp.errorhandler(ChangeTrackerError)
    @bp.errorhandler(SQLAlchemyError)
    def operation_failed(e):
        logger.exception("%s operation failed", model_kind)
        return jsonify({'error': 'Operation failed'}), 500

    @bp.route('/')
    @login_required
    def list_view():
        page = _int_arg('page', 1)
        per_page = min(_int_arg('limit', current_app.config['PAGE_SIZE']), 100)
        filters = {name: request.args.get(name) for name in request.args if name not in ('page', 'limit', 'search')}

        pagination = list_assets(model_kind, page=page, per_page=per_page,
                                 search=request.args.get('search', '').strip(), filters=filters)
        return jsonify({
            'success': True,
            'data': [asset.to_dict() for asset in pagination.items],
            'total': pagination.total,
            'page': page,
            'pageSize': per_page,
            'totalPages': pagination.pages,
        })

    @bp.route('/', methods=['POST'])
    @login_required
    def create_view():
        if not current_user.can_edit:
            return _forbidden()
        asset = create_asset(model_kind, _payload(), current_user.id, **request_meta())
        return jsonify({'success': True, 'data': asset.to_dict()}), 201

    @bp.route('/<int:asset_id>')
    @login_required
    def detail_view(asset_id):
        asset = get_asset(model_kind, asset_id)
        history = get_asset_history(model_kind, asset_id, limit=current_app.config['HISTORY_LIMIT'])
        return jsonify({'success': True, 'data': asset.to_dict(), 'history': history})

    @bp.route('/<int:asset_id>', methods=['PUT'])
    @login_required
    def update_view(asset_id):
        if not current_user.can_edit:
            return _forbidden()
        asset, changes = update_asset(model_kind, asset_id, _payload(), current_user.id, **request_meta())
        return jsonify({
            'success': True,
            'data': asset.to_dict(),
            'changedFields': [change.field for change in changes],
        })

    @bp.route('/<int:asset_id>', methods=['DELETE'])
    @login_required
    def dispose_view(asset_id):
        if not current_user.can_edit:
            return _forbidden()
        dispose_asset(model_kind, asset_id, current_user.id, **request_meta())
        return jsonify({'success': True})

for bp in asset_blueprints:
    register_asset_views(bp, AssetKind(bp.name))

network_bp = next(bp for bp in asset_blueprints if bp.name == AssetKind.NETWORK.value)

@network_bp.route('/check-duplicate', methods=['POST'])
@login_required
def check_duplicate_ip():
    data = _payload()
    ip_address = (data.get('ip_address') or '').strip()
    if not ip_address:
        return jsonify({'error': 'IP address is required'}), 400

    try:
        exclude_id = int(data.get('excludeId') or 0)
    except (TypeError, ValueError):
        return jsonify({'error': 'Invalid excludeId'}), 400

    existing = find_duplicate_ip(ip_address, exclude_id=exclude_id)
    if existing is not None:
        return jsonify({'isDuplicate': True, 'existingDevice': existing.assigned_device or 'Unassigned'})
    return jsonify({'isDuplicate': False})
