from flask import Blueprint, jsonify

from fleet.exceptions import NotFound
from fleet.forms.forms import MaintenanceForm
from fleet.routes import form_error_response, owner_required, result_response
from fleet.services import maintenance_service
from fleet.services.results import ActionResult

maintenance = Blueprint('maintenance', __name__)


def _record_fields(form):
    return dict(
        description=form.description.data or None,
        date_performed=form.date_performed.data,
        cost=form.cost.data,
        service_provider=form.service_provider.data or None,
        notes=form.notes.data or None,
    )


@maintenance.route('', methods=['GET'])
@owner_required
def list_records(owner_id):
    return jsonify([r.to_dict() for r in maintenance_service.get_maintenance_records(owner_id)])


@maintenance.route('', methods=['POST'])
@owner_required
def add_record(owner_id):
    form = MaintenanceForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    result = maintenance_service.create_maintenance_record(
        owner_id, form.vehicle_id.data, form.service_type.data.strip(), form.next_due_date.data, form.status.data,
        **_record_fields(form)
    )
    return result_response(result, 201)


@maintenance.route('/<int:record_id>', methods=['GET'])
@owner_required
def record_detail(owner_id, record_id):
    record = maintenance_service.get_maintenance_record_by_id(owner_id, record_id)
    if record is None:
        return result_response(ActionResult.fail(NotFound("Maintenance record not found")))
    return jsonify(record.to_dict())


@maintenance.route('/<int:record_id>', methods=['PUT'])
@owner_required
def edit_record(owner_id, record_id):
    form = MaintenanceForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    result = maintenance_service.update_maintenance_record(
        owner_id, record_id, form.vehicle_id.data, form.service_type.data.strip(), form.next_due_date.data,
        form.status.data, **_record_fields(form)
    )
    return result_response(result)


@maintenance.route('/<int:record_id>', methods=['DELETE'])
@owner_required
def delete_record(owner_id, record_id):
    return result_response(maintenance_service.delete_maintenance_record(owner_id, record_id))


@maintenance.route('/<int:record_id>/complete', methods=['POST'])
@owner_required
def complete_record(owner_id, record_id):
    return result_response(maintenance_service.mark_maintenance_completed(owner_id, record_id))
