import io
import json
import socket

import pytest

from grel_client import app
from grel_client.session import run_session
from grel_client.transport import Transport
from helpers.fake_screen import FakeScreen


@pytest.fixture
def wired(monkeypatch, tmp_path):
    """Route ``app.main`` through a socketpair and a scripted screen."""

    ours, peer = socket.socketpair()
    peer.settimeout(2.0)
    calls = {}

    def fake_open_transport(address, timeout, read_size, hello=None):
        calls["address"] = address
        calls["hello"] = hello
        return Transport(ours, read_size=read_size)

    def fake_run_curses(session, settings):
        calls["settings"] = settings
        run_session(session, FakeScreen())

    monkeypatch.setattr(app, "open_transport", fake_open_transport)
    monkeypatch.setattr(app, "_run_curses", fake_run_curses)
    yield peer, calls, ["-c", str(tmp_path / "grel.json")]
    peer.close()


def test_missing_name_prints_usage_and_exits_2(capsys):
    with pytest.raises(SystemExit) as excinfo:
        app.main([])
    assert excinfo.value.code == 2
    assert "usage:" in capsys.readouterr().err


def test_generate_default_writes_settings(tmp_path):
    path = tmp_path / "cfg" / "grel.json"
    out = io.StringIO()
    assert app.main(["-g", "-c", str(path)], output=out) == 0
    assert json.loads(path.read_text(encoding="utf-8"))["address"] == "127.0.0.1:51516"
    assert str(path) in out.getvalue()


def test_bad_settings_file_exits_2(tmp_path):
    path = tmp_path / "grel.json"
    path.write_text(json.dumps({"tick_ms": -5}), encoding="utf-8")
    out = io.StringIO()
    assert app.main(["alice", "-c", str(path)], output=out) == 2
    assert "tick_ms" in out.getvalue()


def test_connection_failure_exits_1(tmp_path):
    spare = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    spare.bind(("127.0.0.1", 0))
    port = spare.getsockname()[1]
    spare.close()
    out = io.StringIO()
    code = app.main(["alice", "-a", f"127.0.0.1:{port}", "-c", str(tmp_path / "grel.json")], output=out)
    assert code == 1
    assert "Error connecting" in out.getvalue()


def test_server_logout_exits_0_with_message(wired):
    peer, calls, config_args = wired
    peer.sendall(b'{"Info":"welcome"}{"Logout":"bye"}')
    out = io.StringIO()
    assert app.main(["alice", "-a", "chat.example:4000", *config_args], output=out) == 0
    assert out.getvalue() == "bye\n"
    assert calls["address"] == "chat.example:4000"
    assert json.loads(calls["hello"]) == {"Name": {"who": "", "new": "alice"}}


def test_fatal_transport_error_exits_1(wired):
    peer, _, config_args = wired
    peer.close()
    out = io.StringIO()
    assert app.main(["alice", *config_args], output=out) == 1
    assert "Connection closed by server." in out.getvalue()
