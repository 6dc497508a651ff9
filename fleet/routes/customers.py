from flask import Blueprint, jsonify, request

from fleet.exceptions import NotFound
from fleet.forms.forms import CustomerForm
from fleet.routes import form_error_response, owner_required, result_response
from fleet.services import customer_service, rental_service
from fleet.services.results import ActionResult

customers = Blueprint('customers', __name__)


def _customer_fields(form):
    return dict(
        email=form.email.data or None,
        phone=form.phone.data or None,
        address=form.address.data or None,
        notes=form.notes.data or None,
    )


@customers.route('', methods=['GET'])
@owner_required
def list_customers(owner_id):
    return jsonify(customer_service.get_customers(owner_id))


@customers.route('', methods=['POST'])
@owner_required
def add_customer(owner_id):
    form = CustomerForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    result = customer_service.add_customer(owner_id, form.name.data.strip(), **_customer_fields(form))
    return result_response(result, 201)


@customers.route('/<int:customer_id>', methods=['GET'])
@owner_required
def customer_detail(owner_id, customer_id):
    customer = customer_service.get_customer_by_id(owner_id, customer_id)
    if customer is None:
        return result_response(ActionResult.fail(NotFound("Customer not found")))
    return jsonify(customer.to_dict())


@customers.route('/<int:customer_id>', methods=['PUT'])
@owner_required
def edit_customer(owner_id, customer_id):
    form = CustomerForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    result = customer_service.update_customer(owner_id, customer_id, form.name.data.strip(),
                                              **_customer_fields(form))
    return result_response(result)


@customers.route('/<int:customer_id>', methods=['DELETE'])
@owner_required
def delete_customer(owner_id, customer_id):
    if request.args.get('with_rentals', 0, type=int):
        customer = customer_service.get_customer_by_id(owner_id, customer_id)
        if customer is None:
            return result_response(ActionResult.fail(NotFound("Customer not found")))
        removed = rental_service.delete_customer_rentals(owner_id, customer.name)
        if not removed:
            return result_response(removed)
    return result_response(customer_service.delete_customer(owner_id, customer_id))


@customers.route('/<int:customer_id>/rentals')
@owner_required
def customer_rentals(owner_id, customer_id):
    if customer_service.get_customer_by_id(owner_id, customer_id) is None:
        return result_response(ActionResult.fail(NotFound("Customer not found")))
    return jsonify([r.to_dict() for r in customer_service.get_customer_rentals(owner_id, customer_id)])
