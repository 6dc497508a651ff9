import datetime
import json

from flask_login import UserMixin

from fleet.extensions import db, bcrypt, login_manager
from fleet.utils import isoformat


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


# --- Models ---
class User(db.Model, UserMixin):
    id = db.Column(db.Integer, primary_key=True)
    # Opaque owner identity: provider subject or local_<hex> for local accounts
    user_id = db.Column(db.String(255), unique=True, nullable=False, index=True)
    username = db.Column(db.String(255))
    email = db.Column(db.String(255), unique=True, nullable=True, index=True)
    password_hash = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)

    def __repr__(self):
        return f"User('{self.username}', '{self.user_id}')"

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        if not self.password_hash:
            return False
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'username': self.username,
            'email': self.email,
        }


class EventLog(db.Model):
    __tablename__ = 'event_log'
    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime, default=datetime.datetime.utcnow, index=True)
    event_type = db.Column(db.String(100), index=True)
    status = db.Column(db.String(50), index=True)
    details = db.Column(db.Text)
    owner_id = db.Column(db.String(255), nullable=True, index=True)
    ip_address = db.Column(db.String(45))

    def to_dict(self):
        return {
            'id': self.id,
            'timestamp': isoformat(self.timestamp),
            'event_type': self.event_type,
            'status': self.status,
            'details': json.loads(self.details) if self.details else None,
        }
