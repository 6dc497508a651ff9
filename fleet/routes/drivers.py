from flask import Blueprint, jsonify

from fleet.forms.forms import DriverForm, DriverStatusForm
from fleet.routes import form_error_response, owner_required, result_response
from fleet.services import driver_service

drivers = Blueprint('drivers', __name__)


def _driver_args(form):
    return (
        form.first_name.data.strip(),
        form.last_name.data.strip(),
        form.license_number.data.strip(),
        form.license_expiry.data,
    )


@drivers.route('', methods=['GET'])
@owner_required
def list_drivers(owner_id):
    return jsonify([d.to_dict() for d in driver_service.get_drivers(owner_id)])


@drivers.route('', methods=['POST'])
@owner_required
def add_driver(owner_id):
    form = DriverForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    result = driver_service.add_driver(owner_id, *_driver_args(form),
                                       contact_number=form.contact_number.data or None,
                                       email=form.email.data or None,
                                       status=form.status.data)
    return result_response(result, 201)


@drivers.route('/<int:driver_id>', methods=['PUT'])
@owner_required
def edit_driver(owner_id, driver_id):
    form = DriverForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    result = driver_service.edit_driver(owner_id, driver_id, *_driver_args(form),
                                        contact_number=form.contact_number.data or None,
                                        email=form.email.data or None,
                                        status=form.status.data)
    return result_response(result)


@drivers.route('/<int:driver_id>', methods=['DELETE'])
@owner_required
def delete_driver(owner_id, driver_id):
    return result_response(driver_service.delete_driver(owner_id, driver_id))


@drivers.route('/<int:driver_id>/status', methods=['POST'])
@owner_required
def change_status(owner_id, driver_id):
    form = DriverStatusForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    return result_response(driver_service.update_driver_status(owner_id, driver_id, form.status.data))
