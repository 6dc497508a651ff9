import datetime

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from fleet.extensions import db
from fleet.models.people import Customer, Driver
from fleet.models.rental import Rental
from fleet.models.vehicle import MaintenanceRecord, Vehicle
from fleet.services.maintenance_service import STATUS_ORDER
from fleet.utils import format_money, isoformat

RECENT_ACTIVITY_LIMIT = 10

EMPTY_STATS = {
    'total_vehicles': 0,
    'active_drivers': 0,
    'total_customers': 0,
    'active_rentals': 0,
    'completed_rentals': 0,
    'rental_revenue': '0.00',
    'pending_maintenance': 0,
    'completed_maintenance': 0,
    'overdue_maintenance': 0,
    'recent_activity': [],
}


def _activity(kind, item_id, description, created_at):
    return {'type': kind, 'id': item_id, 'description': description, 'created_at': created_at}


def _recent_activity(owner_id, limit=RECENT_ACTIVITY_LIMIT):
    """Latest creations across every record type, newest first."""
    entries = []
    for vehicle in Vehicle.query.filter_by(owner_id=owner_id).order_by(Vehicle.created_at.desc()).limit(limit):
        entries.append(_activity('vehicle', vehicle.id, f"Vehicle added: {vehicle.short_name}", vehicle.created_at))
    for driver in Driver.query.filter_by(owner_id=owner_id).order_by(Driver.created_at.desc()).limit(limit):
        entries.append(_activity('driver', driver.id, f"Driver added: {driver.full_name}", driver.created_at))
    for record in MaintenanceRecord.query.filter_by(owner_id=owner_id) \
            .order_by(MaintenanceRecord.created_at.desc()).limit(limit):
        entries.append(_activity('maintenance', record.id, f"Maintenance scheduled: {record.service_type}",
                                 record.created_at))
    for customer in Customer.query.filter_by(owner_id=owner_id).order_by(Customer.created_at.desc()).limit(limit):
        entries.append(_activity('customer', customer.id, f"Customer added: {customer.name}", customer.created_at))
    for rental in Rental.query.filter_by(owner_id=owner_id).order_by(Rental.created_at.desc()).limit(limit):
        entries.append(_activity('rental', rental.id, f"Rental created for {rental.customer_name}", rental.created_at))

    entries.sort(key=lambda e: e['created_at'] or datetime.datetime.min, reverse=True)
    for entry in entries:
        entry['created_at'] = isoformat(entry['created_at'])
    return entries[:limit]


def get_dashboard_stats(owner_id):
    if not owner_id:
        return dict(EMPTY_STATS, recent_activity=[])
    try:
        rental_counts = dict(
            db.session.query(Rental.status, func.count(Rental.id))
            .filter(Rental.owner_id == owner_id)
            .group_by(Rental.status)
            .all()
        )
        maintenance_counts = dict(
            db.session.query(MaintenanceRecord.status, func.count(MaintenanceRecord.id))
            .filter(MaintenanceRecord.owner_id == owner_id)
            .group_by(MaintenanceRecord.status)
            .all()
        )
        revenue = db.session.query(func.coalesce(func.sum(Rental.total_cost), 0)) \
            .filter(Rental.owner_id == owner_id, Rental.status == 'completed').scalar()

        return {
            'total_vehicles': Vehicle.query.filter_by(owner_id=owner_id).count(),
            'active_drivers': Driver.query.filter_by(owner_id=owner_id, status='active').count(),
            'total_customers': Customer.query.filter_by(owner_id=owner_id).count(),
            'active_rentals': rental_counts.get('active', 0),
            'completed_rentals': rental_counts.get('completed', 0),
            'rental_revenue': format_money(revenue or 0),
            'pending_maintenance': maintenance_counts.get('scheduled', 0),
            'completed_maintenance': maintenance_counts.get('completed', 0),
            'overdue_maintenance': maintenance_counts.get('overdue', 0),
            'recent_activity': _recent_activity(owner_id),
        }
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Error fetching dashboard stats: %s", e)
        return dict(EMPTY_STATS, recent_activity=[])


def get_upcoming_maintenance(owner_id, limit=5):
    """Open maintenance work (overdue first, then by due date)."""
    if not owner_id:
        return []
    return MaintenanceRecord.query.filter(
        MaintenanceRecord.owner_id == owner_id,
        MaintenanceRecord.status.in_(('scheduled', 'overdue')),
    ).order_by(STATUS_ORDER, MaintenanceRecord.next_due_date.asc()).limit(limit).all()
