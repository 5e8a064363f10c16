from __future__ import annotations

from flask import Blueprint, Response, request

from app.regdesk.auth import require_admin
from app.regdesk.routes import registration_store
from app.regdesk.service import export_registrations_csv, list_registrations

bp = Blueprint("admin", __name__)


@bp.get("/registrations")
@require_admin
def registrations_list():
    result = list_registrations(
        registration_store(),
        page=request.args.get("page"),
        limit=request.args.get("limit"),
    )
    return result.to_dict()


@bp.get("/registrations/export")
@require_admin
def registrations_export():
    body = export_registrations_csv(registration_store())
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=registrations.csv"},
    )
