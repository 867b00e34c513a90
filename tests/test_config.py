import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from splitit.config import DEFAULT_API_URL, Settings, load_settings, resolve_config_path


def test_defaults_without_file_or_environment(tmp_path) -> None:
    settings = load_settings(tmp_path / "missing.yaml", environ={})

    assert settings.api_base_url == DEFAULT_API_URL
    assert settings.api_timeout == 10.0
    assert settings.api_verify is None
    assert settings.session_secret is None
    assert settings.secure_cookie is False


def test_yaml_file_is_loaded_and_environment_overrides(tmp_path) -> None:
    config = tmp_path / "splitit.yaml"
    config.write_text(
        "api_base_url: https://api.splitit.test/\n"
        "api_timeout: 3\n"
        "session_secret: from-file\n"
        "api_verify: false\n",
        encoding="utf-8",
    )

    settings = load_settings(
        config,
        environ={"SPLITIT_SESSION_SECRET": "from-env", "SPLITIT_SESSION_SECURE": "yes"},
    )

    assert settings.api_base_url == "https://api.splitit.test"
    assert settings.api_timeout == 3.0
    assert settings.api_verify is False
    assert settings.session_secret == "from-env"
    assert settings.secure_cookie is True


def test_verify_path_is_expanded() -> None:
    settings = Settings.from_dict({"api_verify": "~/ca.pem"})
    assert isinstance(settings.api_verify, str)
    assert settings.api_verify.endswith("ca.pem")
    assert not settings.api_verify.startswith("~")


@pytest.mark.parametrize(
    "data",
    [
        {"api_timeout": 0},
        {"session_ttl_hours": -1},
        {"api_base_url": "   "},
        {"unknown_option": 1},
    ],
)
def test_invalid_settings_rejected(data) -> None:
    with pytest.raises(ValueError):
        Settings.from_dict(data)


def test_non_mapping_file_rejected(tmp_path) -> None:
    config = tmp_path / "splitit.yaml"
    config.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(config, environ={})


def test_resolve_config_path_prefers_explicit_value(tmp_path) -> None:
    explicit = tmp_path / "custom.yaml"
    assert resolve_config_path(str(explicit)) == explicit.resolve()
    assert resolve_config_path(None).name == "splitit.yaml"
