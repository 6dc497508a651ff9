from flask import Blueprint, jsonify, request

from fleet.exceptions import NotFound
from fleet.forms.forms import VehicleForm
from fleet.routes import form_error_response, owner_required, result_response
from fleet.services import maintenance_service, rental_service, vehicle_service
from fleet.services.results import ActionResult

vehicles = Blueprint('vehicles', __name__)


def _not_found():
    return result_response(ActionResult.fail(NotFound("Vehicle not found")))


@vehicles.route('', methods=['GET'])
@owner_required
def list_vehicles(owner_id):
    return jsonify(vehicle_service.get_vehicles(owner_id))


@vehicles.route('', methods=['POST'])
@owner_required
def add_vehicle(owner_id):
    form = VehicleForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    result = vehicle_service.add_vehicle(owner_id, form.make.data, form.model.data, form.year.data,
                                         form.license_plate.data)
    return result_response(result, 201)


@vehicles.route('/<int:vehicle_id>', methods=['GET'])
@owner_required
def vehicle_detail(owner_id, vehicle_id):
    vehicle = vehicle_service.get_vehicle_by_id(owner_id, vehicle_id)
    if vehicle is None:
        return _not_found()
    return jsonify(vehicle.to_dict())


@vehicles.route('/<int:vehicle_id>', methods=['PUT'])
@owner_required
def edit_vehicle(owner_id, vehicle_id):
    form = VehicleForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    result = vehicle_service.edit_vehicle(owner_id, vehicle_id, form.make.data, form.model.data, form.year.data,
                                          form.license_plate.data)
    return result_response(result)


@vehicles.route('/<int:vehicle_id>', methods=['DELETE'])
@owner_required
def delete_vehicle(owner_id, vehicle_id):
    return result_response(vehicle_service.delete_vehicle(owner_id, vehicle_id))


@vehicles.route('/<int:vehicle_id>/availability')
@owner_required
def availability(owner_id, vehicle_id):
    available = rental_service.check_availability(
        owner_id, vehicle_id,
        request.args.get('start'), request.args.get('end'),
        exclude_rental_id=request.args.get('exclude', type=int),
    )
    return jsonify({'vehicle_id': vehicle_id, 'available': available})


@vehicles.route('/<int:vehicle_id>/maintenance')
@owner_required
def vehicle_maintenance(owner_id, vehicle_id):
    if vehicle_service.get_vehicle_by_id(owner_id, vehicle_id) is None:
        return _not_found()
    records = maintenance_service.get_maintenance_records_by_vehicle(owner_id, vehicle_id)
    return jsonify([r.to_dict() for r in records])


@vehicles.route('/<int:vehicle_id>/rentals')
@owner_required
def vehicle_rentals(owner_id, vehicle_id):
    if vehicle_service.get_vehicle_by_id(owner_id, vehicle_id) is None:
        return _not_found()
    if request.args.get('status') == rental_service.ACTIVE:
        rentals = rental_service.get_active_rentals_for_vehicle(owner_id, vehicle_id)
    else:
        rentals = rental_service.get_rentals_for_vehicle(owner_id, vehicle_id)
    return jsonify([r.to_dict() for r in rentals])
