from __future__ import annotations

import src.api.server as server_module


def test_run_serves_app_with_configured_port(monkeypatch) -> None:
    calls = []
    monkeypatch.setenv("PORT", "8123")
    monkeypatch.setattr(server_module.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    server_module.run()

    assert calls == [("src.api.main:app", {"host": "0.0.0.0", "port": 8123, "log_level": "info"})]
