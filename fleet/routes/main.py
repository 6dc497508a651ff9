from flask import Blueprint, jsonify, request

from fleet.routes import owner_required
from fleet.services.audit_service import get_events
from fleet.services.dashboard_service import get_dashboard_stats, get_upcoming_maintenance

main = Blueprint('main', __name__)


@main.route('/dashboard')
@owner_required
def dashboard(owner_id):
    return jsonify(get_dashboard_stats(owner_id))


@main.route('/dashboard/upcoming-maintenance')
@owner_required
def upcoming_maintenance(owner_id):
    limit = request.args.get('limit', 5, type=int)
    records = get_upcoming_maintenance(owner_id, limit=max(1, min(limit, 50)))
    return jsonify([r.to_dict() for r in records])


@main.route('/events')
@owner_required
def events(owner_id):
    """Owner's audit trail, newest first; ``?type=`` narrows to one event type."""
    limit = request.args.get('limit', 50, type=int)
    entries = get_events(owner_id, event_type=request.args.get('type'), limit=max(1, min(limit, 200)))
    return jsonify([e.to_dict() for e in entries])
