"""
JWT authentication helpers and middleware for the Flask API.
"""

import uuid
from datetime import datetime, timedelta
from functools import wraps
from typing import Any, Dict, Optional

import jwt
from flask import jsonify, request

from pharmachain.config import LOGIN_PATH, SECRET_KEY, TOKEN_EXPIRY_HOURS
from pharmachain.models import User

# In-memory session registry.
# Structure: {token: {"app": AppContext, "created_at": datetime, "last_activity": datetime}}
sessions: Dict[str, Dict[str, Any]] = {}


def generate_token(user: User) -> str:
    """Generate a JWT token for an authenticated user."""
    payload = {
        "user_id": user.id,
        "role": user.role,
        "name": user.name,
        "jti": uuid.uuid4().hex,
        "iat": datetime.utcnow(),
        "exp": datetime.utcnow() + timedelta(hours=TOKEN_EXPIRY_HOURS),
    }
    return jwt.encode(payload, SECRET_KEY, algorithm="HS256")


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify a JWT token and return the decoded payload (or None)."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def _unauthenticated(message: str):
    return jsonify({"error": message, "redirect": LOGIN_PATH}), 401


def token_required(f):
    """Decorator that gates endpoints behind an authenticated session."""
    @wraps(f)
    def decorated(*args, **kwargs):
        token = None

        if "Authorization" in request.headers:
            auth_header = request.headers["Authorization"]
            try:
                token = auth_header.split(" ")[1]
            except IndexError:
                return _unauthenticated("Invalid authorization header format")

        if not token:
            token = request.args.get("token")

        if not token:
            return _unauthenticated("Authentication token is missing")

        payload = verify_token(token)
        if not payload:
            return _unauthenticated("Invalid or expired token")

        if token not in sessions:
            return _unauthenticated("Session not found. Please login again.")

        session_data = sessions[token]
        session_data["last_activity"] = datetime.utcnow()
        request.session_data = session_data
        request.app_ctx = session_data["app"]
        request.token = token

        return f(*args, **kwargs)

    return decorated


def cleanup_expired_sessions():
    """Tear down sessions that have been inactive beyond TOKEN_EXPIRY_HOURS."""
    now = datetime.utcnow()
    expired = [
        tok for tok, data in sessions.items()
        if (now - data["last_activity"]).total_seconds() > TOKEN_EXPIRY_HOURS * 3600
    ]
    for tok in expired:
        sessions.pop(tok)["app"].logout()
    if expired:
        print(f"[cleanup] Removed {len(expired)} expired sessions")
    return len(expired)
