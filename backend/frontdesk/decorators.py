# Overview: Request decorators for API routes.

from functools import wraps
from flask import jsonify, current_app

from .services.errors import NotFoundError, StoreReadError
from .validation import ValidationError, ConflictError


def handle_service_errors(failure_message: str):
    """
    Translate service exceptions into JSON error responses.

    - ValidationError -> 400
    - NotFoundError   -> 404
    - ConflictError   -> 409
    - StoreReadError  -> 503 with failure_message (logged, never retried)
    - anything else   -> 500 (logged)
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except ValidationError as e:
                return jsonify({"error": str(e)}), 400
            except NotFoundError as e:
                return jsonify({"error": str(e)}), 404
            except ConflictError as e:
                return jsonify({"error": str(e)}), 409
            except StoreReadError:
                current_app.logger.exception(failure_message)
                return jsonify({"error": failure_message}), 503
            except Exception:
                current_app.logger.exception(failure_message)
                return jsonify({"error": "Internal server error"}), 500

        return decorated_function

    return decorator
