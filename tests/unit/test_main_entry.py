from __future__ import annotations

from unittest.mock import patch

from storefront import main as entrypoint
from storefront.app.main import app


def test_main_run_uses_env_port(monkeypatch):
    monkeypatch.setenv("PORT", "5001")
    with patch("uvicorn.run") as run_mock:
        entrypoint.run()
    run_mock.assert_called_once()
    args, kwargs = run_mock.call_args
    assert args[0] is app
    assert kwargs.get("port") == 5001
    assert kwargs.get("host") == "0.0.0.0"


def test_main_run_defaults_to_8000(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    with patch("uvicorn.run") as run_mock:
        entrypoint.run()
    assert run_mock.call_args.kwargs["port"] == 8000


def test_app_registers_storefront_routes():
    paths = set(app.openapi()["paths"])
    assert {"/auth/login", "/auth/verify", "/auth/logout", "/api/agent", "/api/products/search"} <= paths
