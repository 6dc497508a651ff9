"""
Rental lifecycle: availability, creation, completion, edits and status
changes for rental records.

Every function takes the caller's owner id first and only ever touches rows
carrying that id. Two day-counting rules coexist on purpose:

* creation and edits bill ``ceil(end - start)`` days, so a same-day rental
  costs nothing;
* completion bills the inclusive calendar-day count ``(end - start) + 1``,
  so a same-day return is one day.
"""
import datetime
import math
from collections import namedtuple
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from fleet.exceptions import FleetError, NotFound, ValidationError, VehicleUnavailable
from fleet.extensions import db
from fleet.models.rental import Rental
from fleet.models.vehicle import Vehicle
from fleet.services.audit_service import log_event
from fleet.services.results import ActionResult, service_action
from fleet.utils import parse_date, parse_money, round_money

ACTIVE = 'active'
COMPLETED = 'completed'
CANCELLED = 'cancelled'
RENTAL_STATUSES = (ACTIVE, COMPLETED, CANCELLED)

CustomerSnapshot = namedtuple('CustomerSnapshot', ['name', 'email', 'phone'], defaults=(None, None))


# --- Day counting ---
def _as_datetime(value):
    if isinstance(value, datetime.datetime):
        return value
    value = parse_date(value)
    return datetime.datetime(value.year, value.month, value.day)


def creation_duration_days(start_date, end_date):
    """Billable days when booking or editing: ceiling of the elapsed time."""
    elapsed = _as_datetime(end_date) - _as_datetime(start_date)
    return math.ceil(elapsed.total_seconds() / 86400)


def completion_duration_days(start_date, actual_end_date):
    """Billable days on return: whole calendar days, both ends included."""
    return (parse_date(actual_end_date) - parse_date(start_date)).days + 1


def ranges_overlap(a_start, a_end, b_start, b_end):
    """Closed intervals: sharing a boundary day counts as overlapping."""
    return a_start <= b_end and a_end >= b_start


# --- Helpers ---
def _require_id(value, field_name):
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Missing {field_name}")
    if parsed <= 0:
        raise ValidationError(f"Missing {field_name}")
    return parsed


def _require_status(status):
    if status not in RENTAL_STATUSES:
        raise ValidationError(f"Invalid rental status: {status}")
    return status


def _parse_period(start_date, end_date):
    start = parse_date(start_date, 'start date')
    end = parse_date(end_date, 'end date')
    if end < start:
        raise ValidationError("End date must be on or after the start date")
    return start, end


def _get_owned_rental(owner_id, rental_id):
    rental = Rental.query.filter_by(id=_require_id(rental_id, 'rental ID'), owner_id=owner_id).first()
    if rental is None:
        raise NotFound("Rental not found")
    return rental


def _overlapping_query(owner_id, vehicle_id, start, end, exclude_rental_id=None):
    query = Rental.query.filter(
        Rental.vehicle_id == vehicle_id,
        Rental.status == ACTIVE,
        Rental.owner_id == owner_id,
        Rental.start_date <= end,
        Rental.end_date >= start,
    )
    if exclude_rental_id:
        query = query.filter(Rental.id != exclude_rental_id)
    return query


# --- Availability ---
def check_availability(owner_id, vehicle_id, start_date, end_date, exclude_rental_id=None):
    """
    True when no active rental of the owner's vehicle overlaps the period.
    Fails closed: no owner, bad input or a database error all answer False.
    """
    if not owner_id:
        return False
    try:
        start = parse_date(start_date, 'start date')
        end = parse_date(end_date, 'end date')
        conflict = _overlapping_query(owner_id, vehicle_id, start, end, exclude_rental_id).first()
    except FleetError as e:
        current_app.logger.warning("Availability check rejected for vehicle %s: %s", vehicle_id, e.message)
        return False
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Error checking vehicle availability for vehicle %s: %s", vehicle_id, e)
        return False
    return conflict is None


# --- Mutations ---
@service_action('adding rental')
def create_rental(owner_id, vehicle_id, customer, start_date, end_date, daily_rate, notes=None):
    vehicle_id = _require_id(vehicle_id, 'vehicle ID')
    if customer is None or not (customer.name or '').strip():
        raise ValidationError("Missing required fields")
    start, end = _parse_period(start_date, end_date)
    rate = parse_money(daily_rate, 'daily_rate', positive=True)

    duration_days = creation_duration_days(start, end)
    total_cost = round_money(rate * duration_days)

    # Lock the vehicle row so concurrent bookings of the same vehicle queue
    # behind this check-then-insert.
    vehicle = Vehicle.query.filter_by(id=vehicle_id, owner_id=owner_id).with_for_update().first()
    if vehicle is None:
        raise NotFound("Vehicle not found")

    if not check_availability(owner_id, vehicle_id, start, end):
        current_app.logger.info("Vehicle %s unavailable from %s to %s", vehicle_id, start, end)
        raise VehicleUnavailable()

    rental = Rental(
        vehicle_id=vehicle_id,
        owner_id=owner_id,
        customer_name=customer.name.strip(),
        customer_email=customer.email,
        customer_phone=customer.phone,
        start_date=start,
        end_date=end,
        daily_rate=round_money(rate),
        total_cost=total_cost,
        status=ACTIVE,
        notes=notes,
    )
    db.session.add(rental)
    db.session.commit()

    data = rental.to_dict()
    log_event("Rental Created", "SUCCESS",
              {"rental_id": rental.id, "vehicle_id": vehicle_id, "total_cost": data['total_cost']},
              owner_id=owner_id)
    return ActionResult.ok('Rental added successfully', data=data)


@service_action('completing rental')
def complete_rental(owner_id, rental_id, actual_end_date=None, notes=None):
    rental = _get_owned_rental(owner_id, rental_id)

    actual_end = parse_date(actual_end_date, 'actual end date') if actual_end_date else datetime.date.today()
    duration_days = completion_duration_days(rental.start_date, actual_end)
    actual_total_cost = round_money(Decimal(rental.daily_rate) * duration_days)

    rental.end_date = actual_end
    rental.total_cost = actual_total_cost
    rental.status = COMPLETED
    if notes:
        rental.notes = notes
    db.session.commit()

    data = rental.to_dict()
    data['duration_days'] = duration_days
    log_event("Rental Completed", "SUCCESS",
              {"rental_id": rental.id, "days": duration_days, "total_cost": data['total_cost']},
              owner_id=owner_id)
    return ActionResult.ok(
        f"Rental completed successfully. Final cost: ${actual_total_cost:.2f} for {duration_days} day(s).",
        data=data,
    )


@service_action('updating rental')
def update_rental(owner_id, rental_id, start_date, end_date, daily_rate, notes=None, status=None):
    rental = _get_owned_rental(owner_id, rental_id)
    start, end = _parse_period(start_date, end_date)
    rate = parse_money(daily_rate, 'daily_rate', positive=True)
    if status is not None:
        _require_status(status)

    # Completion has its own billing rule; hand over instead of recomputing here.
    if status == COMPLETED and rental.status != COMPLETED:
        return complete_rental(owner_id, rental.id, actual_end_date=end, notes=notes)

    # TODO: decide with product whether date edits should re-run check_availability.
    # Completion takes actual_end_date as given, so an end before the start bills negative days.
    rental.start_date = start
    rental.end_date = end
    rental.daily_rate = round_money(rate)
    rental.total_cost = round_money(rate * creation_duration_days(start, end))
    if status is not None:
        rental.status = status
    if notes is not None:
        rental.notes = notes
    db.session.commit()

    return ActionResult.ok('Rental updated successfully', data=rental.to_dict())


@service_action('updating rental status')
def update_rental_status(owner_id, rental_id, status):
    _require_status(status)
    rental = _get_owned_rental(owner_id, rental_id)
    rental.status = status
    db.session.commit()
    return ActionResult.ok(f"Rental marked as {status}", data=rental.to_dict())


@service_action('deleting rental')
def delete_rental(owner_id, rental_id):
    rental = _get_owned_rental(owner_id, rental_id)
    db.session.delete(rental)
    db.session.commit()
    log_event("Rental Deleted", "SUCCESS", {"rental_id": rental_id}, owner_id=owner_id)
    return ActionResult.ok('Rental deleted successfully')


@service_action('deleting customer rentals')
def delete_customer_rentals(owner_id, customer_name):
    if not customer_name:
        raise ValidationError("Missing customer name")
    deleted = Rental.query.filter_by(owner_id=owner_id, customer_name=customer_name).delete(synchronize_session=False)
    db.session.commit()
    return ActionResult.ok('All rentals for this customer deleted successfully', data={'deleted': deleted})


# --- Queries ---
def get_rentals(owner_id):
    if not owner_id:
        return []
    return Rental.query.filter_by(owner_id=owner_id).order_by(Rental.created_at.desc(), Rental.id.desc()).all()


def get_rental_by_id(owner_id, rental_id):
    if not owner_id or not rental_id:
        return None
    return Rental.query.filter_by(id=rental_id, owner_id=owner_id).first()


def get_active_rentals_for_vehicle(owner_id, vehicle_id):
    if not owner_id or not vehicle_id:
        return []
    return Rental.query.filter_by(vehicle_id=vehicle_id, owner_id=owner_id, status=ACTIVE) \
        .order_by(Rental.start_date.desc()).all()


def get_rentals_for_vehicle(owner_id, vehicle_id):
    if not owner_id or not vehicle_id:
        return []
    return Rental.query.filter_by(vehicle_id=vehicle_id, owner_id=owner_id) \
        .order_by(Rental.start_date.desc()).all()
