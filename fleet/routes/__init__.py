from functools import wraps

from flask import jsonify
from flask_login import login_required

from fleet.exceptions import NotAuthenticated, NotFound, StoreError, ValidationError, VehicleUnavailable
from fleet.services.identity_service import get_current_owner_id
from fleet.services.results import ActionResult

ERROR_STATUS = {
    NotAuthenticated.error: 401,
    ValidationError.error: 400,
    NotFound.error: 404,
    VehicleUnavailable.error: 409,
    StoreError.error: 500,
}


def result_response(result, success_status=200):
    """Serializes an ActionResult, picking the HTTP status from its error code."""
    status = success_status if result.success else ERROR_STATUS.get(result.error, 400)
    return jsonify(result.to_dict()), status


def form_error_response(form):
    payload = ActionResult.fail(ValidationError()).to_dict()
    payload['errors'] = form.errors
    return jsonify(payload), 400


# --- Owner decorator ---
def owner_required(f):
    """Login gate that resolves the caller's owner id and passes it first."""
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        owner_id = get_current_owner_id()
        if not owner_id:
            return result_response(ActionResult.fail(NotAuthenticated()))
        return f(owner_id, *args, **kwargs)
    return decorated_function
