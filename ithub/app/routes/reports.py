import logging

from flask import current_app, jsonify, request, Blueprint
from flask_login import login_required
from sqlalchemy.exc import SQLAlchemyError

from ithub.app import db
from ithub.app.history import get_aggregate_history
from ithub.app.models import AssetKind
from ithub.app.services.assets import status_distribution, summarize_assets

logger = logging.getLogger(__name__)

reports_bp = Blueprint('reports', __name__)

STATUS_KINDS = (AssetKind.PC, AssetKind.SERVER, AssetKind.PRINTER)

def _empty_summary():
    return {kind.value: {'total': 0, 'active': 0} for kind in AssetKind}

@reports_bp.route('/')
@login_required
def report():
    period = request.args.get('period', 'week')
    start_date = request.args.get('startDate') or None
    end_date = request.args.get('endDate') or None

    try:
        changes = get_aggregate_history(period, start_date, end_date,
                                        limit=current_app.config['REPORT_LIMIT'])
    except ValueError:
        return jsonify({'error': 'Invalid startDate or endDate'}), 400

    try:
        summary = summarize_assets()
        distribution = {kind.value: status_distribution(kind) for kind in STATUS_KINDS}
    except SQLAlchemyError:
        # Return zeroed data so the dashboard still loads
        db.session.rollback()
        logger.exception("Asset summary failed, returning empty summary")
        summary = _empty_summary()
        distribution = {kind.value: [] for kind in STATUS_KINDS}

    return jsonify({
        'success': True,
        'data': {
            'summary': summary,
            'statusDistribution': distribution,
            'changes': changes.to_dict(),
            'period': changes.period,
        },
    })

@reports_bp.route('/recent')
@login_required
def recent_changes():
    """Latest activity for the dashboard widget."""
    limit = min(request.args.get('limit', 10, type=int), 100)
    changes = get_aggregate_history(period=None, limit=limit)
    return jsonify({'success': True, 'data': changes.records})
