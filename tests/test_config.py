import importlib

from webapp import config


def test_dev_server_settings_come_from_env(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("FLASK_DEBUG", "true")
    try:
        reloaded = importlib.reload(config)
        assert reloaded.PORT == 8080
        assert reloaded.FLASK_DEBUG is True
    finally:
        monkeypatch.delenv("PORT")
        monkeypatch.delenv("FLASK_DEBUG")
        importlib.reload(config)


def test_dev_server_defaults(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("FLASK_DEBUG", raising=False)

    reloaded = importlib.reload(config)

    assert reloaded.PORT == 5001
    assert reloaded.FLASK_DEBUG is False
