from flask import Blueprint, jsonify, request

from fleet.forms.forms import CustomReportForm, SavedReportForm
from fleet.routes import form_error_response, owner_required, result_response
from fleet.services import report_service

reports = Blueprint('reports', __name__)


@reports.route('', methods=['GET'])
@owner_required
def catalog(owner_id):
    return jsonify(report_service.get_report_catalog())


@reports.route('/counts')
@owner_required
def counts(owner_id):
    return jsonify(report_service.get_report_counts(owner_id))


@reports.route('/saved', methods=['GET'])
@owner_required
def saved_reports(owner_id):
    return jsonify([r.to_dict() for r in report_service.get_saved_reports(owner_id)])


@reports.route('/saved', methods=['POST'])
@owner_required
def save_report(owner_id):
    form = SavedReportForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    result = report_service.save_report(owner_id, form.report_id.data, name=form.name.data)
    return result_response(result, 201)


@reports.route('/saved/<int:saved_report_id>', methods=['DELETE'])
@owner_required
def delete_saved_report(owner_id, saved_report_id):
    return result_response(report_service.delete_saved_report(owner_id, saved_report_id))


@reports.route('/custom', methods=['POST'])
@owner_required
def custom_report(owner_id):
    form = CustomReportForm()
    if not form.validate_on_submit():
        return form_error_response(form)
    filters = (request.get_json(silent=True) or {}).get('filters') or []
    result = report_service.generate_custom_report(owner_id, form.table.data, form.columns.data,
                                                   filters=filters, name=form.name.data)
    return result_response(result, 201)


@reports.route('/<report_id>')
@owner_required
def report_detail(owner_id, report_id):
    return result_response(report_service.generate_report(owner_id, report_id))
