"""Tests for the CLI entry point."""

import json
import time
from unittest.mock import patch

import pytest

from concierge.cli import main
from concierge.db import KeyValueStore
from concierge.session import AUTH_TIMESTAMP_KEY


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "cli.db"
    monkeypatch.setenv("CONCIERGE_DB_PATH", str(path))
    monkeypatch.setattr("concierge.cli.load_dotenv", lambda: None)
    return path


@pytest.fixture
def logged_in(db_path, capsys):
    main(["login"])
    capsys.readouterr()
    return db_path


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1
    assert "usage" in capsys.readouterr().out


def test_protected_command_requires_login(db_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["items"])
    assert exc.value.code == 1
    assert "Not logged in" in capsys.readouterr().err


def test_login_shows_guide_once(db_path, capsys):
    main(["login"])
    first = capsys.readouterr().out
    assert "Logged in" in first
    assert "Welcome" in first

    main(["login"])
    assert "Welcome" not in capsys.readouterr().out


def test_whoami_and_logout(logged_in, capsys):
    main(["whoami"])
    assert "Logged in." in capsys.readouterr().out
    main(["logout"])
    main(["whoami"])
    assert "Anonymous" in capsys.readouterr().out


def test_expired_session_rejected(logged_in, capsys):
    with KeyValueStore(logged_in) as store:
        store.set(AUTH_TIMESTAMP_KEY, "0")
    with pytest.raises(SystemExit):
        main(["list"])
    assert "session expired" in capsys.readouterr().err


def test_protected_command_renews_session(logged_in, capsys):
    stale = int(time.time() * 1000) - 60 * 60 * 1000
    with KeyValueStore(logged_in) as store:
        store.set(AUTH_TIMESTAMP_KEY, str(stale))

    main(["list"])
    capsys.readouterr()

    with KeyValueStore(logged_in) as store:
        assert int(store.get(AUTH_TIMESTAMP_KEY)) > stale


def test_items_demo_data(logged_in, capsys):
    main(["items", "--json"])
    data = json.loads(capsys.readouterr().out)
    assert data["demo"] is True
    assert {i["name"] for i in data["items"]} == {"Café", "Leite", "Arroz"}
    assert data["stats"]["items_running_out"] == 1


def test_catalog_add_track_and_buy(logged_in, capsys):
    main(["catalog", "add", "Arroz", "--price", "4.5", "--quantity", "5", "--id", "1", "--icon", "🍚"])
    assert "Added 🍚 Arroz" in capsys.readouterr().out

    main(["items", "--json"])
    data = json.loads(capsys.readouterr().out)
    assert data["demo"] is False
    assert data["items"][0]["days_left"] == 30

    main(["add", "1"])
    assert "Added Arroz" in capsys.readouterr().out
    main(["add", "1"])
    assert "already on your shopping list" in capsys.readouterr().out

    main(["list", "--json"])
    entries = json.loads(capsys.readouterr().out)
    assert entries == [{
        "id": "1", "name": "Arroz", "icon": "🍚",
        "priority": "normal", "estimatedPrice": 4.5,
    }]


def test_add_unknown_item(logged_in, capsys):
    with pytest.raises(SystemExit):
        main(["add", "nope"])
    assert "No tracked item" in capsys.readouterr().err


def test_catalog_to_list_and_remove(logged_in, capsys):
    main(["catalog", "add", "Feijão", "--price", "6.2", "--quantity", "2", "--id", "2"])
    main(["catalog", "to-list", "2"])
    assert "Added Feijão" in capsys.readouterr().out
    main(["remove", "2"])
    assert "Removed Feijão" in capsys.readouterr().out
    main(["list"])
    assert "empty" in capsys.readouterr().out


def test_catalog_list_and_remove(logged_in, capsys):
    main(["catalog", "list"])
    assert "empty" in capsys.readouterr().out
    main(["catalog", "add", "Leite", "--price", "3.8", "--quantity", "1", "--id", "3"])
    main(["catalog", "list"])
    assert "Leite" in capsys.readouterr().out
    main(["catalog", "remove", "3"])
    assert "Removed Leite" in capsys.readouterr().out


def test_checkout_prints_receipt_then_clears(logged_in, capsys):
    main(["add", "1"])  # demo Café
    capsys.readouterr()

    with patch("concierge.cli.time.sleep") as mock_sleep:
        main(["checkout"])
    out = capsys.readouterr().out
    assert "Total: R$ 12.90" in out
    assert "1 item." in out
    assert out.index("finalized") < out.index("List cleared")
    mock_sleep.assert_called_once_with(2.0)

    main(["list"])
    assert "empty" in capsys.readouterr().out


def test_checkout_empty(logged_in, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["checkout"])
    assert exc.value.code == 1
    assert "before checking out" in capsys.readouterr().err


def test_share_falls_back_and_reports(logged_in, capsys):
    main(["add", "2"])
    capsys.readouterr()
    with patch("shutil.which", return_value=None):
        with pytest.raises(SystemExit):
            main(["share"])
    captured = capsys.readouterr()
    assert "Could not share" in captured.err
    assert "Leite" in captured.out
