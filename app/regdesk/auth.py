from __future__ import annotations

import hmac
from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import Blueprint, Flask, current_app, request, session

from app.regdesk.errors import RateLimited, Unauthorized
from app.regdesk.security import RateLimiter, client_ip

bp = Blueprint("auth", __name__)

SESSION_FLAG = "is_admin"

_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds


def init_login_limiter(app: Flask) -> None:
    app.extensions["login_rate_limiter"] = RateLimiter(_LOGIN_RATE_LIMIT, _LOGIN_RATE_WINDOW)


def is_authenticated() -> bool:
    return bool(session.get(SESSION_FLAG))


def check_credentials(username: Any, password: Any) -> bool:
    """
    Compare against ADMIN_USER / ADMIN_PASS in constant time.
    Unconfigured credentials never match.
    """
    expected_user = current_app.config.get("ADMIN_USER") or ""
    expected_pass = current_app.config.get("ADMIN_PASS") or ""
    if not expected_user or not expected_pass:
        return False
    if not isinstance(username, str) or not isinstance(password, str):
        return False
    user_ok = hmac.compare_digest(username.encode("utf-8"), expected_user.encode("utf-8"))
    pass_ok = hmac.compare_digest(password.encode("utf-8"), expected_pass.encode("utf-8"))
    return user_ok and pass_ok


def require_admin(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Reject with 401 before the view runs, so unauthenticated requests never reach the store."""

    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if not is_authenticated():
            raise Unauthorized()
        return fn(*args, **kwargs)

    return wrapped


def _request_data() -> dict:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


@bp.post("/login")
def login_post():
    data = _request_data()
    username = data.get("username")
    ip = client_ip()
    limiter: RateLimiter = current_app.extensions["login_rate_limiter"]

    if limiter.is_limited(ip):
        current_app.logger.warning("Login rate limit hit ip=%s", ip)
        raise RateLimited("Too many login attempts. Please wait 5 minutes.")

    if not check_credentials(username, data.get("password")):
        limiter.hit(ip)
        current_app.logger.warning("Admin login failed ip=%s", ip)
        return {"success": False, "message": "Invalid credentials"}, 401

    limiter.reset(ip)
    session.clear()
    session.permanent = True
    session[SESSION_FLAG] = True
    current_app.logger.info("Admin login ip=%s", ip)
    return {"success": True, "message": "Logged in successfully"}


@bp.get("/logout")
def logout():
    session.clear()
    return {"success": True, "message": "Logged out"}


@bp.get("/session")
def session_status():
    return {"success": True, "authenticated": is_authenticated()}
