import uvicorn

from routine_builder.__main__ import main


def test_main_serves_app_with_env_bind(monkeypatch):
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setenv("HOST", "0.0.0.0")
    monkeypatch.setenv("PORT", "9001")

    main()

    assert calls == [("routine_builder.app:app", {"host": "0.0.0.0", "port": 9001})]


def test_main_defaults_to_localhost(monkeypatch):
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.delenv("HOST", raising=False)
    monkeypatch.delenv("PORT", raising=False)

    main()

    assert calls == [("routine_builder.app:app", {"host": "127.0.0.1", "port": 8000})]
