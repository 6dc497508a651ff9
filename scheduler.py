import datetime
import smtplib

from flask import current_app
from flask_mail import Message

from fleet import create_app
from fleet.extensions import mail
from fleet.models.user import User
from fleet.services.audit_service import log_event
from fleet.services.maintenance_service import check_overdue_maintenance
from fleet.services.dashboard_service import get_upcoming_maintenance


# --- Daily maintenance digest ---
def build_maintenance_digest(owner_id, today=None):
    """Plain-text summary of the owner's open maintenance, or None when nothing is open."""
    today = today or datetime.date.today()
    records = get_upcoming_maintenance(owner_id, limit=50)
    if not records:
        return None

    lines = [f"Fleet maintenance for {today.strftime('%d/%m/%Y')}:", ""]
    for record in records:
        marker = "OVERDUE" if record.status == 'overdue' else "due"
        lines.append(f"- {record.vehicle.short_name}: {record.service_type} ({marker} {record.next_due_date.isoformat()})")
    lines.extend(["", "Fleet Manager"])
    return "\n".join(lines)


def send_daily_maintenance_digest(today=None):
    """
    Flags overdue maintenance for every owner and e-mails each owner with an
    address a digest of the open work. Returns how many digests were sent.
    """
    today = today or datetime.date.today()
    current_app.logger.info("Starting daily maintenance digest for %s", today)
    sent = 0
    for user in User.query.order_by(User.id).all():
        check_overdue_maintenance(user.user_id, today=today)
        if not user.email:
            continue
        body = build_maintenance_digest(user.user_id, today=today)
        if body is None:
            continue
        message = Message(subject=f"Maintenance digest {today.isoformat()}", recipients=[user.email], body=body)
        try:
            mail.send(message)
        except (smtplib.SMTPException, OSError) as e:
            current_app.logger.error("Could not send maintenance digest to %s: %s", user.email, e)
            continue
        sent += 1
        log_event("Maintenance Digest", "SENT", {"date": today.isoformat()}, owner_id=user.user_id)
    current_app.logger.info("Maintenance digest finished: %s sent", sent)
    return sent


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        send_daily_maintenance_digest()
