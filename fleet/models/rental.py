import datetime

from fleet.extensions import db
from fleet.utils import format_money, isoformat


class Rental(db.Model):
    __tablename__ = 'rentals'
    id = db.Column(db.Integer, primary_key=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey('vehicles.id'), nullable=False, index=True)
    owner_id = db.Column(db.String(255), nullable=False, index=True)
    # Snapshot of the renter at booking time, not a link to Customer
    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255))
    customer_phone = db.Column(db.String(50))
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    daily_rate = db.Column(db.Numeric(10, 2), nullable=False)
    total_cost = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(50), nullable=False, default='active', index=True)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    vehicle = db.relationship('Vehicle', back_populates='rentals')

    def __repr__(self):
        return f"Rental(Vehicle: {self.vehicle_id}, Customer: {self.customer_name}, Start: {self.start_date}, End: {self.end_date})"

    def to_dict(self):
        return {
            'id': self.id,
            'vehicle_id': self.vehicle_id,
            'vehicle_info': self.vehicle.display_name if self.vehicle else None,
            'customer_name': self.customer_name,
            'customer_email': self.customer_email,
            'customer_phone': self.customer_phone,
            'start_date': isoformat(self.start_date),
            'end_date': isoformat(self.end_date),
            'daily_rate': format_money(self.daily_rate),
            'total_cost': format_money(self.total_cost),
            'status': self.status,
            'notes': self.notes,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
