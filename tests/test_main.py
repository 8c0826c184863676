"""Tests for the server entry point."""

import main
import routes


def test_serves_the_routes_app(monkeypatch):
    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    main.serve(host="127.0.0.1", port=8123)

    assert calls == [(routes.app, {"host": "127.0.0.1", "port": 8123})]
