import datetime

from flask import current_app
from sqlalchemy import case

from fleet.exceptions import NotFound, ValidationError
from fleet.extensions import db
from fleet.models.vehicle import MaintenanceRecord, Vehicle
from fleet.services.results import ActionResult, service_action
from fleet.utils import parse_date, parse_money

MAINTENANCE_STATUSES = ('scheduled', 'completed', 'overdue')

# overdue first, then scheduled, then completed
STATUS_ORDER = case(
    (MaintenanceRecord.status == 'overdue', 1),
    (MaintenanceRecord.status == 'scheduled', 2),
    (MaintenanceRecord.status == 'completed', 3),
    else_=4,
)


def _get_owned_record(owner_id, record_id):
    record = MaintenanceRecord.query.filter_by(id=record_id, owner_id=owner_id).first()
    if record is None:
        raise NotFound("Maintenance record not found or you do not have permission to access it")
    return record


def _require_owned_vehicle(owner_id, vehicle_id):
    vehicle = Vehicle.query.filter_by(id=vehicle_id, owner_id=owner_id).first()
    if vehicle is None:
        raise NotFound("Vehicle not found or you do not have permission to use it")
    return vehicle


def _parse_fields(vehicle_id, service_type, next_due_date, status, date_performed, cost):
    if not vehicle_id or not service_type or not next_due_date or not status:
        raise ValidationError("Missing required fields")
    if status not in MAINTENANCE_STATUSES:
        raise ValidationError(f"Invalid maintenance status: {status}")
    performed = parse_date(date_performed, 'date performed') if date_performed else None
    due = parse_date(next_due_date, 'next due date')
    amount = parse_money(cost, 'cost') if cost not in (None, '') else 0
    if amount < 0:
        raise ValidationError("Cost cannot be negative")
    return performed, due, amount


@service_action('creating maintenance record')
def create_maintenance_record(owner_id, vehicle_id, service_type, next_due_date, status,
                              description=None, date_performed=None, cost=None,
                              service_provider=None, notes=None):
    performed, due, amount = _parse_fields(vehicle_id, service_type, next_due_date, status, date_performed, cost)
    _require_owned_vehicle(owner_id, vehicle_id)

    record = MaintenanceRecord(
        owner_id=owner_id,
        vehicle_id=vehicle_id,
        service_type=service_type,
        description=description,
        date_performed=performed,
        next_due_date=due,
        cost=amount,
        status=status,
        service_provider=service_provider,
        notes=notes,
    )
    db.session.add(record)
    db.session.commit()
    return ActionResult.ok('Maintenance record created successfully', data=record.to_dict())


@service_action('updating maintenance record')
def update_maintenance_record(owner_id, record_id, vehicle_id, service_type, next_due_date, status,
                              description=None, date_performed=None, cost=None,
                              service_provider=None, notes=None):
    if not record_id:
        raise ValidationError("Missing required fields")
    performed, due, amount = _parse_fields(vehicle_id, service_type, next_due_date, status, date_performed, cost)
    record = _get_owned_record(owner_id, record_id)
    _require_owned_vehicle(owner_id, vehicle_id)

    record.vehicle_id = vehicle_id
    record.service_type = service_type
    record.description = description
    record.date_performed = performed
    record.next_due_date = due
    record.cost = amount
    record.status = status
    record.service_provider = service_provider
    record.notes = notes
    db.session.commit()
    return ActionResult.ok('Maintenance record updated successfully', data=record.to_dict())


@service_action('deleting maintenance record')
def delete_maintenance_record(owner_id, record_id):
    record = _get_owned_record(owner_id, record_id)
    db.session.delete(record)
    db.session.commit()
    return ActionResult.ok('Maintenance record deleted successfully')


@service_action('completing maintenance record')
def mark_maintenance_completed(owner_id, record_id, today=None):
    record = _get_owned_record(owner_id, record_id)
    record.status = 'completed'
    record.date_performed = today or datetime.date.today()
    db.session.commit()
    return ActionResult.ok('Maintenance record marked as completed', data=record.to_dict())


def check_overdue_maintenance(owner_id, today=None):
    """Flags the owner's scheduled records past their due date; returns how many changed."""
    if not owner_id:
        return 0
    today = today or datetime.date.today()
    updated = MaintenanceRecord.query.filter(
        MaintenanceRecord.owner_id == owner_id,
        MaintenanceRecord.status == 'scheduled',
        MaintenanceRecord.next_due_date < today,
    ).update({'status': 'overdue', 'updated_at': datetime.datetime.utcnow()}, synchronize_session=False)
    db.session.commit()
    if updated:
        current_app.logger.info("Marked %s maintenance record(s) overdue for %s", updated, owner_id)
    return updated


def get_maintenance_records(owner_id, today=None):
    if not owner_id:
        return []
    check_overdue_maintenance(owner_id, today=today)
    return MaintenanceRecord.query.filter_by(owner_id=owner_id) \
        .order_by(STATUS_ORDER, MaintenanceRecord.next_due_date.asc()).all()


def get_maintenance_record_by_id(owner_id, record_id):
    if not owner_id or not record_id:
        return None
    return MaintenanceRecord.query.filter_by(id=record_id, owner_id=owner_id).first()


def get_maintenance_records_by_vehicle(owner_id, vehicle_id):
    if not owner_id or not vehicle_id:
        return []
    performed_or_created = case(
        (MaintenanceRecord.date_performed.isnot(None), MaintenanceRecord.date_performed),
        else_=MaintenanceRecord.created_at,
    )
    return MaintenanceRecord.query.filter_by(vehicle_id=vehicle_id, owner_id=owner_id) \
        .order_by(performed_or_created.desc()).all()
