# Overview: Request decorators for admin API routes.

import hmac
import logging
from functools import wraps
from flask import request, jsonify, current_app

logger = logging.getLogger(__name__)

ADMIN_TOKEN_HEADER = "X-Admin-Token"


def _presented_token() -> str | None:
    token = request.headers.get(ADMIN_TOKEN_HEADER)
    if token:
        return token.strip()

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip()

    return None


def require_admin(f):
    """
    Require the pre-shared admin credential.

    Accepts the token in X-Admin-Token (what the admin UI sends) or as
    "Authorization: Bearer <token>". Runs before any payload parsing.

    SECURITY: Returns 401 if:
    - No credential presented
    - Credential does not match ADMIN_TOKEN
    - ADMIN_TOKEN is not configured (fail closed)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _presented_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        expected = current_app.config.get("ADMIN_TOKEN") or ""
        if not expected or not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
            logger.warning("Rejected admin token on %s %s from %s", request.method, request.path, request.remote_addr)
            return jsonify({"error": "Invalid admin token"}), 401

        return f(*args, **kwargs)

    return decorated_function
