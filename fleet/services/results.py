from contextlib import contextmanager
from functools import wraps

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from fleet.exceptions import FleetError, NotAuthenticated, StoreError
from fleet.extensions import db


class ActionResult:
    """Outcome of a service mutation: success flag, message, payload, error code."""

    def __init__(self, success, message=None, data=None, error=None):
        self.success = success
        self.message = message
        self.data = data
        self.error = error

    def __bool__(self):
        return self.success

    def __repr__(self):
        return f"ActionResult(success={self.success}, error={self.error!r}, message={self.message!r})"

    @classmethod
    def ok(cls, message=None, data=None):
        return cls(True, message=message, data=data)

    @classmethod
    def fail(cls, exc):
        return cls(False, message=exc.message, error=exc.error)

    def to_dict(self):
        payload = {'success': self.success, 'message': self.message}
        if self.data is not None:
            payload['data'] = self.data
        if self.error:
            payload['error'] = self.error
        return payload


# --- Session handling ---
@contextmanager
def session_management():
    """Commits on success, rolls back and re-raises on any error."""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def service_action(label):
    """
    Boundary for owner-scoped mutations. The wrapped function receives the
    owner id first; a missing owner stops before touching the store, domain
    errors become failed results and database errors are rolled back and
    reported as ``StoreError``.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(owner_id, *args, **kwargs):
            if not owner_id:
                current_app.logger.warning("%s refused: user not authenticated", label)
                return ActionResult.fail(NotAuthenticated())
            try:
                return f(owner_id, *args, **kwargs)
            except FleetError as e:
                db.session.rollback()
                return ActionResult.fail(e)
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error("Error %s: %s", label, e)
                return ActionResult.fail(StoreError(f"Error {label}: {e}"))
        return decorated_function
    return decorator
