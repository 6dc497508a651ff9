import datetime
import json

from fleet.extensions import db
from fleet.utils import isoformat


class SavedReport(db.Model):
    __tablename__ = 'saved_reports'
    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(255), nullable=False, index=True)
    report_id = db.Column(db.String(100), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    data = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)

    def __repr__(self):
        return f"SavedReport('{self.name}', '{self.report_id}')"

    def to_dict(self, include_data=False):
        result = {
            'id': self.id,
            'report_id': self.report_id,
            'name': self.name,
            'created_at': isoformat(self.created_at),
        }
        if include_data:
            result['data'] = json.loads(self.data)
        return result
