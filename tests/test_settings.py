import pytest

from errors import ConfigurationError
from settings import default_env_file, get_settings, load_env_file, parse_bool


class TestGetSettings:

    def test_defaults(self):
        assert get_settings({}) == {
            "sink": "auto",
            "allow_secret_output": False,
            "mask": False,
            "log_level": "INFO",
            "in_ci": False,
        }

    @pytest.mark.parametrize(
        "environ, expected",
        [
            pytest.param({"CI": "true"}, True, id="ci_true"),
            pytest.param({"CI": "1"}, True, id="ci_one"),
            pytest.param({"CI": "woodpecker"}, False, id="ci_other_value"),
            pytest.param({"KEY_ISSUER_ALLOW_SECRET_OUTPUT": "yes"}, True, id="explicit_yes"),
            pytest.param({"KEY_ISSUER_ALLOW_SECRET_OUTPUT": "off"}, False, id="explicit_off"),
            pytest.param({"CI": "true", "KEY_ISSUER_ALLOW_SECRET_OUTPUT": "false"}, False, id="explicit_false_beats_ci"),
            pytest.param({"CI": "true", "KEY_ISSUER_ALLOW_SECRET_OUTPUT": "true"}, True, id="explicit_true_in_ci"),
            pytest.param({"CI": "true", "KEY_ISSUER_ALLOW_SECRET_OUTPUT": ""}, True, id="empty_falls_back_to_ci"),
        ],
    )
    def test_secret_output_flag(self, environ, expected):
        assert get_settings(environ)["allow_secret_output"] is expected

    def test_overrides(self):
        settings = get_settings({
            "KEY_ISSUER_SINK": "workflow-command",
            "KEY_ISSUER_MASK": "TRUE",
            "KEY_ISSUER_LOG_LEVEL": "debug",
        })
        assert settings["sink"] == "workflow-command"
        assert settings["mask"] is True
        assert settings["log_level"] == "DEBUG"

    def test_bad_boolean_raises(self):
        with pytest.raises(ConfigurationError):
            get_settings({"KEY_ISSUER_MASK": "maybe"})

    def test_bad_log_level_raises(self):
        with pytest.raises(ConfigurationError):
            get_settings({"KEY_ISSUER_LOG_LEVEL": "LOUD"})


def test_parse_bool_accepts_unset():
    assert parse_bool("X", None) is False


def test_load_env_file_does_not_override(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# issuer settings\n"
        'KEY_ISSUER_SINK="github"\n'
        "KEY_ISSUER_MASK='true'\n"
        "not a setting\n"
    )
    environ = {"KEY_ISSUER_SINK": "none"}

    load_env_file(env_file, environ)

    assert environ == {"KEY_ISSUER_SINK": "none", "KEY_ISSUER_MASK": "true"}


def test_load_env_file_missing(tmp_path):
    environ = {}
    load_env_file(tmp_path / ".env", environ)
    assert environ == {}


def test_default_env_file_follows_working_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert default_env_file() == tmp_path / ".env"


def test_load_env_file_defaults_to_working_directory(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("KEY_ISSUER_SINK=none\n")
    monkeypatch.chdir(tmp_path)
    environ = {}

    load_env_file(environ=environ)

    assert environ == {"KEY_ISSUER_SINK": "none"}
