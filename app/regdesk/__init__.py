import logging
from datetime import timedelta

from flask import Flask
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

from app.regdesk.config import is_production, load_config
from app.regdesk.db import check_connection, db_session, init_db, teardown_db_session
from app.regdesk.errors import InternalError, RegistrationError
from app.regdesk.routes import bp as routes_bp
from app.regdesk.auth import bp as auth_bp, init_login_limiter
from app.regdesk.admin import bp as admin_bp
from app.regdesk.security import init_security
from app.regdesk.store import RegistrationStore, SqlRegistrationStore, StoreError


def _error_response(message: str, status: int):
    return {"success": False, "message": message}, status


def create_app(store: RegistrationStore | None = None) -> Flask:
    """
    App factory. Pass `store` to run against something other than the
    configured database (tests); the database is then never touched.
    """
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=1)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True
    app.logger.setLevel(app.config.get("LOG_LEVEL") or "INFO")

    # Production guardrails (fail fast with clear logs)
    if is_production(app.config.get("ENV")):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
        if not app.config.get("ADMIN_USER") or not app.config.get("ADMIN_PASS"):
            raise RuntimeError("ADMIN_USER and ADMIN_PASS must be set in production.")

    if store is None:
        init_db(app)
        # No degraded mode: an unreachable database aborts startup.
        try:
            check_connection(app)
        except Exception:
            app.logger.exception("Database connection failed (DATABASE_URL scheme=%s)", str(app.config["DATABASE_URL"]).split(":", 1)[0])
            raise
        app.logger.info("Database connected")
        store = SqlRegistrationStore(session_factory=db_session)
        app.teardown_appcontext(teardown_db_session)
    app.extensions["registration_store"] = store

    init_security(app)
    init_login_limiter(app)

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/admin")
    app.register_blueprint(admin_bp, url_prefix="/admin")

    @app.errorhandler(RegistrationError)
    def _err_registration(e: RegistrationError):  # type: ignore[no-redef]
        if e.status_code >= 500:
            app.logger.error("Request failed: %s", e.message)
        return _error_response(e.message, e.status_code)

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        return _error_response(e.description or e.name, e.code or 500)

    @app.errorhandler(StoreError)
    def _err_store(e: StoreError):  # type: ignore[no-redef]
        app.logger.exception("Store failure: %s", e)
        return _error_response(InternalError.default_message, InternalError.status_code)

    @app.errorhandler(Exception)
    def _err_500(e: Exception):  # type: ignore[no-redef]
        # Ensure stack trace shows in logs; the client only gets the generic message.
        app.logger.exception("Unhandled 500")
        return _error_response(InternalError.default_message, InternalError.status_code)

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
