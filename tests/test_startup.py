"""App factory guardrails, configuration and request throttling."""
import logging

import pytest

from app.regdesk import create_app
from app.regdesk.config import load_config
from app.regdesk.store import MemoryRegistrationStore
from scripts.release import run_release
from scripts.start import gunicorn_argv, resolve_port


@pytest.fixture()
def env(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("ADMIN_USER", "admin")
    monkeypatch.setenv("ADMIN_PASS", "pw")
    for k in ("FRONTEND_URL", "RATE_LIMIT_PER_MINUTE", "DATABASE_URL"):
        monkeypatch.delenv(k, raising=False)
    return monkeypatch


def _production(env, **overrides):
    values = {
        "ENV": "production",
        "DATABASE_URL": "postgresql://regdesk:pw@db.example.internal/regdesk",
        "SECRET_KEY": "a-long-random-production-secret",
        "ADMIN_USER": "admin",
        "ADMIN_PASS": "pw",
        "FRONTEND_URL": "https://register.example.org",
    }
    values.update(overrides)
    for k, v in values.items():
        if v is None:
            env.delenv(k, raising=False)
        else:
            env.setenv(k, v)


def test_config_defaults(env):
    cfg = load_config()
    assert cfg["DATABASE_URL"] == "sqlite:///regdesk.db"
    assert cfg["RATE_LIMIT_PER_MINUTE"] == 60
    assert cfg["SESSION_COOKIE_SECURE"] is False
    assert cfg["SESSION_COOKIE_SAMESITE"] == "Strict"
    assert cfg["MAX_CONTENT_LENGTH"] == 10 * 1024


def test_session_lifetime_is_one_hour_sliding(env):
    app = create_app(store=MemoryRegistrationStore())
    assert app.config["PERMANENT_SESSION_LIFETIME"].total_seconds() == 3600
    assert app.config["SESSION_REFRESH_EACH_REQUEST"] is True


def test_unreachable_database_aborts_startup(env, tmp_path):
    env.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'missing-dir' / 'nested' / 'x.db'}")
    with pytest.raises(Exception):
        create_app()


@pytest.mark.parametrize(
    "overrides,match",
    [
        ({"DATABASE_URL": "sqlite:///prod.db"}, "Postgres"),
        ({"SECRET_KEY": "change-me"}, "SECRET_KEY"),
        ({"ADMIN_PASS": None}, "ADMIN_USER"),
    ],
)
def test_production_guardrails(env, overrides, match):
    _production(env, **overrides)
    with pytest.raises(RuntimeError, match=match):
        create_app(store=MemoryRegistrationStore())


def test_production_cookie_and_cors(env):
    _production(env)
    app = create_app(store=MemoryRegistrationStore())
    assert app.config["SESSION_COOKIE_SECURE"] is True
    client = app.test_client()

    r = client.get("/health", headers={"Origin": "https://register.example.org"})
    assert r.headers["Access-Control-Allow-Origin"] == "https://register.example.org"

    r = client.get("/health", headers={"Origin": "https://evil.example.com"})
    assert "Access-Control-Allow-Origin" not in r.headers


def test_unconfigured_admin_credentials_never_log_in(env):
    env.delenv("ADMIN_USER")
    env.delenv("ADMIN_PASS")
    client = create_app(store=MemoryRegistrationStore()).test_client()
    r = client.post("/admin/login", json={})
    assert r.status_code == 401
    r = client.post("/admin/login", json={"username": "", "password": ""})
    assert r.status_code == 401


def test_request_rate_limit(env):
    env.setenv("RATE_LIMIT_PER_MINUTE", "2")
    client = create_app(store=MemoryRegistrationStore()).test_client()
    assert client.get("/health").status_code == 200
    assert client.get("/health").status_code == 200
    r = client.get("/health")
    assert r.status_code == 429
    assert r.json["message"] == "Too many requests, please try again later."
    # liveness checks are exempt
    assert client.get("/healthz").status_code == 200


def test_login_attempts_are_throttled(env):
    client = create_app(store=MemoryRegistrationStore()).test_client()
    for _ in range(5):
        assert client.post("/admin/login", json={"username": "admin", "password": "bad"}).status_code == 401
    r = client.post("/admin/login", json={"username": "admin", "password": "pw"})
    assert r.status_code == 429


@pytest.mark.parametrize("raw,expected", [(None, 8080), ("", 8080), ("3000", 3000)])
def test_resolve_port(raw, expected):
    assert resolve_port(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "0", "70000"])
def test_resolve_port_rejects_invalid(raw):
    with pytest.raises(ValueError):
        resolve_port(raw)


@pytest.mark.parametrize("raw,expected", [("VERBOSE", "INFO"), ("debug", "DEBUG"), (" warning ", "WARNING")])
def test_log_level_is_normalized(env, raw, expected):
    env.setenv("LOG_LEVEL", raw)
    assert load_config()["LOG_LEVEL"] == expected
    app = create_app(store=MemoryRegistrationStore())
    assert app.logger.level == logging.getLevelName(expected)


def test_gunicorn_argv_binds_port():
    argv = gunicorn_argv(9000)
    assert argv[:2] == ["gunicorn", "app.wsgi:app"]
    assert "0.0.0.0:9000" in argv
    assert argv[argv.index("--workers") + 1] == "1"


def test_release_requires_database_url(env):
    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        run_release()


def test_release_refuses_sqlite_in_production(env):
    _production(env, DATABASE_URL="sqlite:///prod.db")
    with pytest.raises(RuntimeError, match="Postgres"):
        run_release()
