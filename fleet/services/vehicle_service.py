from flask import current_app

from fleet.exceptions import NotFound, ValidationError
from fleet.extensions import db
from fleet.models.rental import Rental
from fleet.models.vehicle import Vehicle
from fleet.services.audit_service import log_event
from fleet.services.results import ActionResult, service_action


def _clean(value):
    return value.strip() if isinstance(value, str) else value


def _parse_year(year):
    if year in (None, ''):
        return None
    try:
        return int(year)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid year: {year}")


def _get_owned_vehicle(owner_id, vehicle_id):
    vehicle = Vehicle.query.filter_by(id=vehicle_id, owner_id=owner_id).first()
    if vehicle is None:
        raise NotFound("Vehicle not found or you do not have permission to access it")
    return vehicle


@service_action('adding vehicle')
def add_vehicle(owner_id, make, model, year, license_plate):
    make, model, license_plate = _clean(make), _clean(model), _clean(license_plate)
    if not make or not model or not license_plate:
        raise ValidationError("Missing required fields")

    vehicle = Vehicle(owner_id=owner_id, make=make, model=model, year=_parse_year(year),
                      license_plate=license_plate)
    db.session.add(vehicle)
    db.session.commit()
    current_app.logger.info("Vehicle %s added for %s", vehicle.id, owner_id)
    return ActionResult.ok('Vehicle added successfully', data=vehicle.to_dict())


@service_action('updating vehicle')
def edit_vehicle(owner_id, vehicle_id, make, model, year, license_plate):
    make, model, license_plate = _clean(make), _clean(model), _clean(license_plate)
    if not vehicle_id or not make or not model or not license_plate:
        raise ValidationError("Missing required fields")

    vehicle = _get_owned_vehicle(owner_id, vehicle_id)
    vehicle.make = make
    vehicle.model = model
    vehicle.year = _parse_year(year)
    vehicle.license_plate = license_plate
    db.session.commit()
    return ActionResult.ok('Vehicle updated successfully', data=vehicle.to_dict())


@service_action('deleting vehicle')
def delete_vehicle(owner_id, vehicle_id):
    if not vehicle_id:
        raise ValidationError("Missing vehicle ID")
    vehicle = _get_owned_vehicle(owner_id, vehicle_id)

    active = Rental.query.filter_by(vehicle_id=vehicle.id, owner_id=owner_id, status='active').count()
    if active:
        raise ValidationError('Cannot delete a vehicle that is currently rented. Please end the rental first.')

    # Maintenance records and past rentals go with the vehicle (relationship cascade)
    db.session.delete(vehicle)
    db.session.commit()
    log_event("Vehicle Deleted", "SUCCESS", {"vehicle_id": vehicle_id}, owner_id=owner_id)
    return ActionResult.ok('Vehicle and associated maintenance records deleted successfully')


def get_vehicles(owner_id):
    """Owner's vehicles, newest first, with a summary of their current rental."""
    if not owner_id:
        return []
    vehicles = Vehicle.query.filter_by(owner_id=owner_id).order_by(Vehicle.created_at.desc(), Vehicle.id.desc()).all()
    result = []
    for vehicle in vehicles:
        active = vehicle.rentals.filter_by(status='active').order_by(Rental.start_date.desc()).all()
        current = active[0] if active else None
        data = vehicle.to_dict()
        data.update({
            'active_rentals': len(active),
            'active_rental_id': current.id if current else None,
            'rented_to': current.customer_name if current else None,
            'return_date': current.end_date.isoformat() if current else None,
        })
        result.append(data)
    return result


def get_vehicle_by_id(owner_id, vehicle_id):
    if not owner_id or not vehicle_id:
        return None
    return Vehicle.query.filter_by(id=vehicle_id, owner_id=owner_id).first()
