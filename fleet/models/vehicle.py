import datetime

from fleet.extensions import db
from fleet.utils import format_money, isoformat


class Vehicle(db.Model):
    __tablename__ = 'vehicles'
    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(255), nullable=False, index=True)
    make = db.Column(db.String(255), nullable=False)
    model = db.Column(db.String(255), nullable=False)
    year = db.Column(db.Integer)
    license_plate = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    rentals = db.relationship('Rental', back_populates='vehicle', lazy='dynamic', cascade='all, delete-orphan')
    maintenance_records = db.relationship('MaintenanceRecord', back_populates='vehicle', lazy='dynamic',
                                          cascade='all, delete-orphan')

    def __repr__(self):
        return f"Vehicle('{self.make} {self.model}', '{self.license_plate}')"

    @property
    def display_name(self):
        return f"{self.make} {self.model} ({self.year}) - {self.license_plate}"

    @property
    def short_name(self):
        return f"{self.make} {self.model} ({self.license_plate})"

    def to_dict(self):
        return {
            'id': self.id,
            'make': self.make,
            'model': self.model,
            'year': self.year,
            'license_plate': self.license_plate,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


class MaintenanceRecord(db.Model):
    __tablename__ = 'maintenance_records'
    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(255), nullable=False, index=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey('vehicles.id'), nullable=False, index=True)
    service_type = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    date_performed = db.Column(db.Date, nullable=True)
    next_due_date = db.Column(db.Date, nullable=False)
    cost = db.Column(db.Numeric(10, 2), default=0)
    status = db.Column(db.String(50), nullable=False)
    service_provider = db.Column(db.String(255))
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    vehicle = db.relationship('Vehicle', back_populates='maintenance_records')

    def __repr__(self):
        return f"MaintenanceRecord(Vehicle: {self.vehicle_id}, Service: {self.service_type}, Status: {self.status})"

    def to_dict(self):
        return {
            'id': self.id,
            'vehicle_id': self.vehicle_id,
            'vehicle_info': self.vehicle.short_name if self.vehicle else None,
            'service_type': self.service_type,
            'description': self.description,
            'date_performed': isoformat(self.date_performed),
            'next_due_date': isoformat(self.next_due_date),
            'cost': format_money(self.cost),
            'status': self.status,
            'service_provider': self.service_provider,
            'notes': self.notes,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
