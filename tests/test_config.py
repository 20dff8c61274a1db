from __future__ import annotations

from pathlib import Path

import pytest

from logsync.config import DEFAULT_KEX_ALGORITHMS, ENV_FIELDS, load_config
from logsync.errors import ConfigError

REQUIRED_ENV = {
    "STP_SFTP_HOST": "sftp.example.com",
    "STP_SFTP_USERNAME": "logs",
    "STP_SFTP_PASSWORD": "secret",
    "STP_SFTP_PATH": "/var/log/app.log",
    "STP_S3_BUCKET": "log-snapshots",
    "STP_PAPERTRAIL_HOST": "logs.papertrailapp.com",
    "STP_PAPERTRAIL_PORT": "12345",
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(ENV_FIELDS) + ["STP_CONFIG"]:
        monkeypatch.delenv(name, raising=False)


def _set_env(monkeypatch: pytest.MonkeyPatch, **overrides: str) -> None:
    for name, value in {**REQUIRED_ENV, **overrides}.items():
        monkeypatch.setenv(name, value)


def test_defaults_applied(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_env(monkeypatch)
    config = load_config()

    assert config.sftp.port == 22
    assert config.sftp.kex_algorithms == DEFAULT_KEX_ALGORITHMS
    assert config.s3.region == "us-east-1"
    assert config.snapshot.backend == "s3"
    assert config.papertrail.port == 12345
    assert config.papertrail.use_tls is True
    assert config.log_level == "INFO"
    assert config.silent is False


def test_derived_values(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_env(monkeypatch)
    config = load_config()

    assert config.snapshot_key == "sftp.example.com//var/log/app.log"
    assert config.source_hostname == "sftp.example.com"
    assert config.source_program == "app"


def test_source_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_env(monkeypatch, STP_PAPERTRAIL_HOSTNAME="web-1", STP_PAPERTRAIL_PROGRAM="nginx")
    config = load_config()

    assert config.source_hostname == "web-1"
    assert config.source_program == "nginx"


def test_missing_required_settings_are_all_named(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_env(monkeypatch)
    monkeypatch.delenv("STP_SFTP_HOST")
    monkeypatch.delenv("STP_PAPERTRAIL_PORT")

    with pytest.raises(ConfigError) as excinfo:
        load_config()

    assert excinfo.value.missing == ["STP_SFTP_HOST", "STP_PAPERTRAIL_PORT"]
    assert "STP_SFTP_HOST" in str(excinfo.value)


def test_bucket_not_required_for_file_backend(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _set_env(monkeypatch, STP_SNAPSHOT_BACKEND="file", STP_SNAPSHOT_DIR=str(tmp_path))
    monkeypatch.delenv("STP_S3_BUCKET")

    config = load_config()
    assert config.snapshot.backend == "file"
    assert config.snapshot.directory == str(tmp_path)


def test_unknown_backend_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_env(monkeypatch, STP_SNAPSHOT_BACKEND="redis")
    with pytest.raises(ConfigError, match="redis"):
        load_config()


def test_invalid_port_is_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_env(monkeypatch, STP_SFTP_PORT="not-a-port")
    with pytest.raises(ConfigError, match="Invalid configuration"):
        load_config()


@pytest.mark.parametrize(
    "overrides",
    [
        {"STP_SFTP_PORT": "70000"},
        {"STP_SFTP_PORT": "0"},
        {"STP_PAPERTRAIL_PORT": "99999"},
        {"STP_PAPERTRAIL_FACILITY": "bogus"},
    ],
)
def test_out_of_range_values_rejected_at_load(monkeypatch: pytest.MonkeyPatch, overrides: dict[str, str]) -> None:
    _set_env(monkeypatch, **overrides)
    with pytest.raises(ConfigError, match="Invalid configuration"):
        load_config()


def test_facility_accepted(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_env(monkeypatch, STP_PAPERTRAIL_FACILITY="local3")
    assert load_config().papertrail.facility == "local3"


def test_env_value_conversions(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_env(
        monkeypatch,
        STP_SFTP_PORT="2222",
        STP_SFTP_KEX="curve25519-sha256, diffie-hellman-group14-sha256",
        STP_PAPERTRAIL_TLS="false",
        STP_SILENT="yes",
    )
    config = load_config()

    assert config.sftp.port == 2222
    assert config.sftp.kex_algorithms == ["curve25519-sha256", "diffie-hellman-group14-sha256"]
    assert config.papertrail.use_tls is False
    assert config.silent is True


def test_yaml_file_overridden_by_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    config_file = tmp_path / "sync.yaml"
    config_file.write_text(
        "sftp:\n"
        "  host: yaml-host\n"
        "  username: yaml-user\n"
        "  password: yaml-pass\n"
        "  path: /logs/worker.log\n"
        "s3:\n"
        "  bucket: yaml-bucket\n"
        "  region: eu-west-1\n"
        "papertrail:\n"
        "  host: logs.example.com\n"
        "  port: 514\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("STP_CONFIG", str(config_file))
    monkeypatch.setenv("STP_SFTP_HOST", "env-host")

    config = load_config()

    assert config.sftp.host == "env-host"
    assert config.sftp.username == "yaml-user"
    assert config.s3.region == "eu-west-1"
    assert config.papertrail.port == 514
    assert config.source_program == "worker"


def test_missing_config_file_is_ignored(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _set_env(monkeypatch)
    config = load_config(str(tmp_path / "absent.yaml"))
    assert config.sftp.host == "sftp.example.com"
