from flask import current_app

from fleet.exceptions import NotFound, ValidationError
from fleet.extensions import db
from fleet.models.people import Driver
from fleet.services.results import ActionResult, service_action
from fleet.utils import parse_date

DRIVER_STATUSES = ('active', 'inactive', 'on_leave')


def _validate(first_name, last_name, license_number, license_expiry, status):
    if not first_name or not last_name or not license_number or not license_expiry:
        raise ValidationError("Missing required fields")
    if status not in DRIVER_STATUSES:
        raise ValidationError(f"Invalid driver status: {status}")
    return parse_date(license_expiry, 'license expiry')


def _get_owned_driver(owner_id, driver_id):
    driver = Driver.query.filter_by(id=driver_id, owner_id=owner_id).first()
    if driver is None:
        raise NotFound("Driver not found or you do not have permission to access it")
    return driver


@service_action('adding driver')
def add_driver(owner_id, first_name, last_name, license_number, license_expiry,
               contact_number=None, email=None, status='active'):
    status = status or 'active'
    expiry = _validate(first_name, last_name, license_number, license_expiry, status)
    driver = Driver(
        owner_id=owner_id,
        first_name=first_name,
        last_name=last_name,
        license_number=license_number,
        license_expiry=expiry,
        contact_number=contact_number,
        email=email,
        status=status,
    )
    db.session.add(driver)
    db.session.commit()
    current_app.logger.info("Driver %s added for %s", driver.id, owner_id)
    return ActionResult.ok('Driver added successfully', data=driver.to_dict())


@service_action('updating driver')
def edit_driver(owner_id, driver_id, first_name, last_name, license_number, license_expiry,
                contact_number=None, email=None, status='active'):
    if not driver_id:
        raise ValidationError("Missing required fields")
    expiry = _validate(first_name, last_name, license_number, license_expiry, status)
    driver = _get_owned_driver(owner_id, driver_id)
    driver.first_name = first_name
    driver.last_name = last_name
    driver.license_number = license_number
    driver.license_expiry = expiry
    driver.contact_number = contact_number
    driver.email = email
    driver.status = status
    db.session.commit()
    return ActionResult.ok('Driver updated successfully', data=driver.to_dict())


@service_action('deleting driver')
def delete_driver(owner_id, driver_id):
    if not driver_id:
        raise ValidationError("Missing driver ID")
    driver = _get_owned_driver(owner_id, driver_id)
    db.session.delete(driver)
    db.session.commit()
    return ActionResult.ok('Driver deleted successfully')


@service_action('updating driver status')
def update_driver_status(owner_id, driver_id, status):
    if not driver_id or not status:
        raise ValidationError("Missing driver ID or status")
    if status not in DRIVER_STATUSES:
        raise ValidationError(f"Invalid driver status: {status}")
    driver = _get_owned_driver(owner_id, driver_id)
    driver.status = status
    db.session.commit()
    return ActionResult.ok('Driver status updated successfully', data=driver.to_dict())


def get_drivers(owner_id):
    if not owner_id:
        return []
    return Driver.query.filter_by(owner_id=owner_id).order_by(Driver.created_at.desc(), Driver.id.desc()).all()
