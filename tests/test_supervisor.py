"""Tests for the gateway hand-off."""

import os
import signal
import sys

import pytest

from openclaw_railway import supervisor
from openclaw_railway.errors import HandoffError
from openclaw_railway.supervisor import exit_code, gateway_argv, gateway_env, handoff, run_child


class Execed(Exception):
    pass


class TestGatewayArgs:
    def test_argv_matches_shim_port_and_bind(self, make_settings):
        assert gateway_argv(make_settings()) == [
            "openclaw", "gateway", "--port", "18789", "--bind", "0.0.0.0", "--verbose",
        ]

    def test_quiet(self, make_settings):
        assert "--verbose" not in gateway_argv(make_settings(gateway_verbose=False))

    def test_env_exports_provider_keys(self, make_settings):
        env = gateway_env(make_settings(openai_api_key="sk-oai"), {"PATH": "/usr/bin"})
        assert env == {
            "PATH": "/usr/bin",
            "ANTHROPIC_API_KEY": "sk-ant-test",
            "OPENAI_API_KEY": "sk-oai",
        }

    def test_env_skips_unset_openai_key(self, make_settings):
        env = gateway_env(make_settings(), {})
        assert "OPENAI_API_KEY" not in env


class TestHandoff:
    def test_exec_replaces_process(self, make_settings, monkeypatch):
        calls = []

        def fake_execvpe(file, argv, env):
            calls.append((file, argv, env))
            raise Execed

        monkeypatch.setattr(os, "execvpe", fake_execvpe)
        with pytest.raises(Execed):
            handoff(make_settings())

        file, argv, env = calls[0]
        assert file == "openclaw"
        assert argv[1:] == ["gateway", "--port", "18789", "--bind", "0.0.0.0", "--verbose"]
        assert env["ANTHROPIC_API_KEY"] == "sk-ant-test"

    def test_missing_binary_is_fatal(self, make_settings):
        with pytest.raises(HandoffError):
            handoff(make_settings(gateway_bin="openclaw-does-not-exist"))

    def test_spawn_mode_exits_with_child_code(self, make_settings, monkeypatch):
        monkeypatch.setattr(supervisor, "run_child", lambda argv, env: 7)
        with pytest.raises(SystemExit) as exc:
            handoff(make_settings(handoff_mode="spawn"))
        assert exc.value.code == 7

    def test_shim_is_notified_before_exec(self, make_settings, monkeypatch):
        events = []

        class FakeShim:
            pid = 4242

            def poll(self):
                return None

            def send_signal(self, sig):
                events.append(("signal", sig))

        def fake_execvpe(file, argv, env):
            events.append(("exec", file))
            raise Execed

        monkeypatch.setattr(os, "execvpe", fake_execvpe)
        with pytest.raises(Execed):
            handoff(make_settings(), FakeShim())

        assert events == [("signal", signal.SIGUSR1), ("exec", "openclaw")]

    def test_exited_shim_is_not_signalled(self, make_settings, monkeypatch):
        class ExitedShim:
            pid = 4242

            def poll(self):
                return 0

            def send_signal(self, sig):
                raise AssertionError("signalled an exited shim")

        monkeypatch.setattr(supervisor, "run_child", lambda argv, env: 0)
        with pytest.raises(SystemExit):
            handoff(make_settings(handoff_mode="spawn"), ExitedShim())


class TestRunChild:
    def test_propagates_exit_code(self):
        assert run_child([sys.executable, "-c", "import sys; sys.exit(3)"], dict(os.environ)) == 3

    def test_child_sees_env(self):
        code = "import os, sys; sys.exit(0 if os.environ['ANTHROPIC_API_KEY'] == 'k' else 1)"
        env = {**os.environ, "ANTHROPIC_API_KEY": "k"}
        assert run_child([sys.executable, "-c", code], env) == 0

    def test_missing_binary(self):
        with pytest.raises(HandoffError):
            run_child(["openclaw-does-not-exist"], {})


@pytest.mark.parametrize("returncode,expected", [(0, 0), (1, 1), (-15, 143), (-9, 137)])
def test_exit_code(returncode, expected):
    assert exit_code(returncode) == expected
