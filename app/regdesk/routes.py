from flask import Blueprint, current_app, request

from app.regdesk.service import submit_registration
from app.regdesk.store import RegistrationStore

bp = Blueprint("routes", __name__)


def registration_store() -> RegistrationStore:
    return current_app.extensions["registration_store"]


@bp.post("/api/register")
def register():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = request.form.to_dict()
    submit_registration(registration_store(), payload)
    return {"message": "Registration saved"}, 201


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"status": "ok"}


@bp.get("/healthz")
def healthz():
    """
    Fast liveness check. No DB access, exempt from rate limiting.
    """
    return "ok", 200
