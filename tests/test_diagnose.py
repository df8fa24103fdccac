"""Smoke tests for the diagnostic steps."""

import json

from openclaw_railway import diagnose
from openclaw_railway.gateway_token import resolve_token
from openclaw_railway.openclaw_config import materialize_config


class TestStepToken:
    def test_missing_token_file_is_not_a_failure(self, make_settings, capsys):
        settings = make_settings()
        assert diagnose.step_token(settings) is True
        assert "a new token will be generated" in capsys.readouterr().out
        assert not settings.token_file.exists()

    def test_persisted_token(self, make_settings, capsys):
        settings = make_settings()
        resolve_token(settings)

        assert diagnose.step_token(settings) is True
        assert "token file mode is 0600" in capsys.readouterr().out

    def test_loose_permissions_fail(self, make_settings):
        settings = make_settings()
        resolve_token(settings)
        settings.token_file.chmod(0o644)

        assert diagnose.step_token(settings) is False

    def test_empty_token_file_fails(self, make_settings, capsys):
        settings = make_settings()
        settings.data_dir.mkdir(parents=True)
        settings.token_file.write_text("")

        assert diagnose.step_token(settings) is False
        assert "FAIL" in capsys.readouterr().out


class TestStepConfig:
    def test_missing_config_is_not_a_failure(self, make_settings, capsys):
        assert diagnose.step_config(make_settings()) is True
        assert "it will be generated on next boot" in capsys.readouterr().out

    def test_generated_config_matches_env(self, make_settings, capsys):
        settings = make_settings(telegram_bot_token="123:abc")
        materialize_config(settings, "tok")

        assert diagnose.step_config(settings) is True
        out = capsys.readouterr().out
        assert "telegram" in out
        assert "disagree" not in out

    def test_legacy_placeholder_is_flagged(self, make_settings, capsys):
        settings = make_settings()
        settings.config_dir.mkdir(parents=True)
        settings.config_file.write_text(json.dumps({"channels": {"_": None}}))

        assert diagnose.step_config(settings) is True
        assert 'legacy "_" placeholder' in capsys.readouterr().out

    def test_invalid_json_fails(self, make_settings):
        settings = make_settings()
        settings.config_dir.mkdir(parents=True)
        settings.config_file.write_text("{not json")

        assert diagnose.step_config(settings) is False


def test_step_port_with_nothing_listening(make_settings, free_port, capsys):
    assert diagnose.step_port(make_settings(gateway_port=free_port)) is True
    assert "nothing listening" in capsys.readouterr().out
