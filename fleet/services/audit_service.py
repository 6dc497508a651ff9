import json

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from fleet.extensions import db
from fleet.models.user import EventLog


def log_event(event_type, status, details, owner_id=None, ip_address=None):
    """Central helper that writes an EventLog row; never raises."""
    try:
        log_entry = EventLog(
            event_type=event_type,
            status=status,
            details=json.dumps(details, ensure_ascii=False, default=str),
            owner_id=owner_id,
            ip_address=ip_address
        )
        db.session.add(log_entry)
        db.session.commit()
    except SQLAlchemyError as e:
        current_app.logger.error("Error saving event log: %s", e)
        db.session.rollback()


def get_events(owner_id, event_type=None, limit=50):
    if not owner_id:
        return []
    query = EventLog.query.filter_by(owner_id=owner_id)
    if event_type:
        query = query.filter_by(event_type=event_type)
    return query.order_by(EventLog.timestamp.desc(), EventLog.id.desc()).limit(limit).all()
