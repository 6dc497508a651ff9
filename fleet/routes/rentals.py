from flask import Blueprint, jsonify, request

from fleet.exceptions import NotFound
from fleet.forms.forms import RentalForm, RentalEditForm, RentalStatusForm, CompleteRentalForm
from fleet.routes import form_error_response, owner_required, result_response
from fleet.services import rental_service
from fleet.services.rental_service import CustomerSnapshot
from fleet.services.results import ActionResult

rentals = Blueprint('rentals', __name__)


@rentals.route('', methods=['GET'])
@owner_required
def list_rentals(owner_id):
    status = request.args.get('status')
    items = rental_service.get_rentals(owner_id)
    if status:
        items = [r for r in items if r.status == status]
    return jsonify([r.to_dict() for r in items])


@rentals.route('', methods=['POST'])
@owner_required
def add_rental(owner_id):
    form = RentalForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    customer = CustomerSnapshot(form.customer_name.data, form.customer_email.data or None,
                                form.customer_phone.data or None)
    result = rental_service.create_rental(
        owner_id,
        form.vehicle_id.data,
        customer,
        form.start_date.data,
        form.end_date.data,
        form.daily_rate.data,
        notes=form.notes.data or None,
    )
    return result_response(result, 201)


@rentals.route('/<int:rental_id>', methods=['GET'])
@owner_required
def rental_detail(owner_id, rental_id):
    rental = rental_service.get_rental_by_id(owner_id, rental_id)
    if rental is None:
        return result_response(ActionResult.fail(NotFound("Rental not found")))
    return jsonify(rental.to_dict())


@rentals.route('/<int:rental_id>', methods=['PUT'])
@owner_required
def edit_rental(owner_id, rental_id):
    form = RentalEditForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    result = rental_service.update_rental(
        owner_id,
        rental_id,
        form.start_date.data,
        form.end_date.data,
        form.daily_rate.data,
        notes=form.notes.data or None,
        status=form.status.data or None,
    )
    return result_response(result)


@rentals.route('/<int:rental_id>', methods=['DELETE'])
@owner_required
def delete_rental(owner_id, rental_id):
    return result_response(rental_service.delete_rental(owner_id, rental_id))


@rentals.route('/<int:rental_id>/status', methods=['POST'])
@owner_required
def change_status(owner_id, rental_id):
    form = RentalStatusForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    return result_response(rental_service.update_rental_status(owner_id, rental_id, form.status.data))


@rentals.route('/<int:rental_id>/complete', methods=['POST'])
@owner_required
def complete(owner_id, rental_id):
    form = CompleteRentalForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    result = rental_service.complete_rental(owner_id, rental_id, actual_end_date=form.actual_end_date.data,
                                            notes=form.notes.data or None)
    return result_response(result)
