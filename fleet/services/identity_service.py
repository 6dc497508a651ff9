import uuid

import requests
from flask import current_app
from flask_login import current_user

from fleet.extensions import db
from fleet.models.user import User
from fleet.services.audit_service import log_event


def get_current_owner_id():
    """Owner id of the logged-in user for this request, or None."""
    if not current_user or not current_user.is_authenticated:
        return None
    return current_user.user_id


def new_local_owner_id():
    return f"local_{uuid.uuid4().hex}"


def fetch_provider_profile(token):
    """
    Asks the identity provider who a bearer token belongs to.
    Returns the profile dict (with at least ``id``) or None.
    """
    url = current_app.config.get('IDENTITY_PROVIDER_USERINFO_URL')
    if not token or not url:
        return None
    try:
        response = requests.get(
            url,
            headers={'Authorization': f'Bearer {token}', 'Accept': 'application/json'},
            timeout=current_app.config.get('IDENTITY_PROVIDER_TIMEOUT', 10),
        )
        response.raise_for_status()
        profile = response.json()
    except requests.exceptions.RequestException as e:
        current_app.logger.warning("Identity provider request failed: %s", e)
        return None
    except ValueError:
        current_app.logger.warning("Identity provider returned a non-JSON body")
        return None

    if not isinstance(profile, dict):
        return None
    subject = profile.get('id') or profile.get('sub')
    if not subject:
        return None
    profile['id'] = str(subject)
    return profile


def _display_name(profile):
    return (profile.get('username') or profile.get('first_name')
            or profile.get('email') or f"User-{profile['id'][:8]}")


def sync_provider_user(profile):
    """Get-or-create the local user behind a provider profile."""
    subject = profile['id']
    user = User.query.filter_by(user_id=subject).first()
    created = user is None
    if created:
        user = User(user_id=subject)
        db.session.add(user)
    user.username = _display_name(profile)
    email = profile.get('email')
    if email and not User.query.filter(User.email == email, User.user_id != subject).first():
        user.email = email
    db.session.commit()
    if created:
        log_event("Provider User Created", "SUCCESS", {"username": user.username}, owner_id=subject)
    return user
