import pytest
import yaml

from nightscout_bar.poller.check import main, parse_args, settings_updates
from nightscout_bar.poller.settings import ENV_OVERRIDES

from conftest import free_port


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    for env_name in list(ENV_OVERRIDES.values()) + ["LOG_LEVEL", "NIGHTSCOUT_BAR_TIMEOUT",
                                                    "NIGHTSCOUT_BAR_POLL_INTERVAL"]:
        monkeypatch.delenv(env_name, raising=False)
    settings_path = tmp_path / "settings.yaml"
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "request_timeout": 2.0,
        "settings_file": str(settings_path),
    }))
    return path, settings_path


def test_settings_updates_only_include_given_flags():
    args = parse_args(["--server-url", "https://ns", "--no-mmol"])
    assert settings_updates(args) == {"ServerURL": "https://ns", "ShowValuesInMmol": False}

    args = parse_args(["--api-secret", "s", "--server-mmol"])
    assert settings_updates(args) == {"APISecret": "s", "ServerInMmol": True}

    assert settings_updates(parse_args([])) == {}


def test_failed_check_without_save_leaves_settings_alone(config_file, capsys):
    config_path, settings_path = config_file
    url = f"http://127.0.0.1:{free_port()}"

    exit_code = main(["--config", str(config_path), "--server-url", url])

    assert exit_code == 1
    assert not settings_path.exists()
    output = capsys.readouterr().out
    assert "Network Request Error" in output
    assert url in output


def test_save_writes_settings_before_testing(config_file):
    config_path, settings_path = config_file
    url = f"http://127.0.0.1:{free_port()}"

    main(["--config", str(config_path), "--server-url", url, "--api-secret", "abc", "--mmol", "--save"])

    saved = yaml.safe_load(settings_path.read_text())
    assert saved == {"ServerURL": url, "APISecret": "abc", "ShowValuesInMmol": True}


def test_missing_server_url_fails(config_file, capsys):
    config_path, _ = config_file
    assert main(["--config", str(config_path)]) == 1
    assert "no server URL configured" in capsys.readouterr().out


def test_unreadable_settings_file_is_reported_as_error(config_file, capsys):
    config_path, settings_path = config_file
    settings_path.write_text("ServerURL: [unclosed\n")

    exit_code = main(["--config", str(config_path), "--server-url", "https://ns.example.com"])

    assert exit_code == 1
    assert "Could not read settings" in capsys.readouterr().out
    assert settings_path.read_text() == "ServerURL: [unclosed\n"


def test_save_into_unreadable_settings_file_fails(config_file, capsys):
    config_path, settings_path = config_file
    settings_path.write_text("- not\n- a mapping\n")

    exit_code = main(["--config", str(config_path), "--server-url", "https://ns.example.com", "--save"])

    assert exit_code == 1
    assert "Could not read settings" in capsys.readouterr().out
    assert settings_path.read_text() == "- not\n- a mapping\n"
