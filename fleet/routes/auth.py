from flask import Blueprint, current_app, jsonify, request
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy.exc import SQLAlchemyError

from fleet.exceptions import NotAuthenticated, StoreError, ValidationError
from fleet.extensions import db
from fleet.forms.forms import RegistrationForm, LoginForm, TokenForm
from fleet.models.user import User
from fleet.routes import form_error_response, result_response
from fleet.services.audit_service import log_event
from fleet.services.identity_service import fetch_provider_profile, new_local_owner_id, sync_provider_user
from fleet.services.results import ActionResult, session_management

auth = Blueprint('auth', __name__)


# --- Routes ---
@auth.route('/register', methods=['POST'])
def register():
    form = RegistrationForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    email = form.email.data.strip().lower()
    if User.query.filter_by(email=email).first():
        return result_response(ActionResult.fail(ValidationError("This email is already registered.")))

    user = User(user_id=new_local_owner_id(), username=form.username.data.strip(), email=email)
    user.set_password(form.password.data)
    try:
        with session_management():
            db.session.add(user)
    except SQLAlchemyError as e:
        current_app.logger.error("Error registering user: %s", e)
        return result_response(ActionResult.fail(StoreError("Error registering user")))

    log_event("User Registered", "SUCCESS", {"username": user.username}, owner_id=user.user_id,
              ip_address=request.remote_addr)
    return result_response(ActionResult.ok('Account created successfully', data=user.to_dict()), 201)


@auth.route('/login', methods=['POST'])
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    if user is None or not user.check_password(form.password.data):
        log_event("Login", "FAILED", {"email": form.email.data}, ip_address=request.remote_addr)
        return result_response(ActionResult.fail(NotAuthenticated("Invalid email or password")))

    remember = bool((request.get_json(silent=True) or {}).get('remember'))
    login_user(user, remember=remember)
    return result_response(ActionResult.ok('Logged in successfully', data=user.to_dict()))


@auth.route('/token', methods=['POST'])
def token_login():
    """Signs in with a bearer token issued by the external identity provider."""
    form = TokenForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    profile = fetch_provider_profile(form.token.data)
    if profile is None:
        return result_response(ActionResult.fail(NotAuthenticated("Invalid or expired token")))

    try:
        user = sync_provider_user(profile)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Error syncing provider user: %s", e)
        return result_response(ActionResult.fail(StoreError("Error syncing user")))

    login_user(user)
    return result_response(ActionResult.ok('Logged in successfully', data=user.to_dict()))


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    current_app.logger.info("User %s logged out", current_user.user_id)
    logout_user()
    return jsonify({'success': True, 'message': 'Logged out successfully'})
