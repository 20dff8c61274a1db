"""Configuration management for log sync runs."""

import os
from pathlib import PurePosixPath
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError

DEFAULT_SFTP_PORT = 22
DEFAULT_AWS_REGION = "us-east-1"

# Explicit diffie-hellman algorithms resolve handshake issues with older SFTP servers.
# Entries the installed paramiko no longer implements are skipped when connecting.
DEFAULT_KEX_ALGORITHMS = [
    "diffie-hellman-group1-sha1",
    "diffie-hellman-group-exchange-sha1",
    "diffie-hellman-group14-sha1",
    "diffie-hellman-group-exchange-sha256",
]

# Syslog facility names accepted for forwarded lines.
SyslogFacility = Literal[
    "kern", "user", "mail", "daemon", "auth", "syslog", "lpr", "news", "uucp", "cron",
    "authpriv", "ftp", "local0", "local1", "local2", "local3", "local4", "local5",
    "local6", "local7",
]


class SFTPConfig(BaseModel):
    """Remote log file location and SFTP session settings."""
    host: str = Field(description="SFTP server hostname")
    port: int = Field(default=DEFAULT_SFTP_PORT, ge=1, le=65535, description="SFTP server port")
    username: str = Field(description="SFTP username")
    password: str = Field(description="SFTP password, KMS encrypted when running in Lambda")
    path: str = Field(description="Path of the log file on the SFTP server")
    kex_algorithms: list[str] = Field(
        default_factory=lambda: list(DEFAULT_KEX_ALGORITHMS),
        description="Key exchange algorithms offered during the handshake",
    )


class S3Config(BaseModel):
    """S3 bucket holding the last known log file contents."""
    bucket: Optional[str] = Field(default=None, description="S3 bucket name")
    region: str = Field(default=DEFAULT_AWS_REGION, description="AWS region")


class SnapshotConfig(BaseModel):
    """Where snapshots are kept."""
    backend: str = Field(default="s3", description="Snapshot backend: s3 or file")
    directory: str = Field(default="snapshots", description="Base directory for the file backend")


class PapertrailConfig(BaseModel):
    """Papertrail log destination."""
    host: str = Field(description="Papertrail log destination host")
    port: int = Field(ge=1, le=65535, description="Papertrail log destination port")
    use_tls: bool = Field(default=True, description="Wrap the syslog connection in TLS")
    facility: SyslogFacility = Field(default="daemon", description="Syslog facility for forwarded lines")
    hostname: Optional[str] = Field(default=None, description="Source hostname, defaults to the SFTP host")
    program: Optional[str] = Field(default=None, description="Source program, defaults to the log file name")


class SyncConfig(BaseModel):
    """Main configuration for a sync run."""

    sftp: SFTPConfig
    s3: S3Config = Field(default_factory=S3Config)
    snapshot: SnapshotConfig = Field(default_factory=SnapshotConfig)
    papertrail: PapertrailConfig

    log_level: str = Field(default="INFO", description="Logging level")
    silent: bool = Field(default=False, description="Only print warnings and errors")
    debug: bool = Field(default=False, description="Verbose output of transfer chunks and forwarded lines")
    schedule_interval: int = Field(default=300, description="Seconds between runs in schedule mode")

    @property
    def snapshot_key(self) -> str:
        return f"{self.sftp.host}/{self.sftp.path}"

    @property
    def source_hostname(self) -> str:
        return self.papertrail.hostname or self.sftp.host

    @property
    def source_program(self) -> str:
        return self.papertrail.program or PurePosixPath(self.sftp.path).stem


# Environment variable -> (section, field). A section of None is a top-level field.
ENV_FIELDS: Dict[str, tuple] = {
    "STP_SFTP_HOST": ("sftp", "host"),
    "STP_SFTP_PORT": ("sftp", "port"),
    "STP_SFTP_USERNAME": ("sftp", "username"),
    "STP_SFTP_PASSWORD": ("sftp", "password"),
    "STP_SFTP_PATH": ("sftp", "path"),
    "STP_SFTP_KEX": ("sftp", "kex_algorithms"),
    "STP_S3_BUCKET": ("s3", "bucket"),
    "STP_S3_REGION": ("s3", "region"),
    "STP_SNAPSHOT_BACKEND": ("snapshot", "backend"),
    "STP_SNAPSHOT_DIR": ("snapshot", "directory"),
    "STP_PAPERTRAIL_HOST": ("papertrail", "host"),
    "STP_PAPERTRAIL_PORT": ("papertrail", "port"),
    "STP_PAPERTRAIL_TLS": ("papertrail", "use_tls"),
    "STP_PAPERTRAIL_FACILITY": ("papertrail", "facility"),
    "STP_PAPERTRAIL_HOSTNAME": ("papertrail", "hostname"),
    "STP_PAPERTRAIL_PROGRAM": ("papertrail", "program"),
    "STP_LOG_LEVEL": (None, "log_level"),
    "STP_SILENT": (None, "silent"),
    "STP_DEBUG": (None, "debug"),
    "STP_SCHEDULE_INTERVAL": (None, "schedule_interval"),
}

REQUIRED_FIELDS = [
    "STP_SFTP_HOST",
    "STP_SFTP_USERNAME",
    "STP_SFTP_PASSWORD",
    "STP_SFTP_PATH",
    "STP_PAPERTRAIL_HOST",
    "STP_PAPERTRAIL_PORT",
]


def _env_value(env_name: str, value: str) -> Any:
    if env_name == "STP_SFTP_KEX":
        return [part.strip() for part in value.split(",") if part.strip()]
    if env_name in ("STP_PAPERTRAIL_TLS", "STP_SILENT", "STP_DEBUG"):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return value


def _lookup(config_data: Dict[str, Any], env_name: str) -> Any:
    section, key = ENV_FIELDS[env_name]
    scope = config_data if section is None else config_data.get(section) or {}
    return scope.get(key)


def _find_missing(config_data: Dict[str, Any]) -> List[str]:
    required = list(REQUIRED_FIELDS)
    backend = (config_data.get("snapshot") or {}).get("backend", "s3")
    if backend == "s3":
        required.append("STP_S3_BUCKET")
    return [name for name in required if _lookup(config_data, name) in (None, "")]


def load_config(config_path: Optional[str] = None) -> SyncConfig:
    """Load configuration from an optional YAML file overridden by environment variables.

    Raises:
        ConfigError: if a required setting is missing or a value is invalid.
    """
    if config_path is None:
        config_path = os.getenv("STP_CONFIG")

    config_data: Dict[str, Any] = {}

    if config_path and os.path.exists(config_path):
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
        if not isinstance(config_data, dict):
            raise ConfigError(f"Configuration file {config_path} must contain a mapping")

    for env_name, (section, key) in ENV_FIELDS.items():
        value = os.getenv(env_name)
        if value is None or value == "":
            continue
        if section is not None and not isinstance(config_data.get(section), dict):
            config_data[section] = {}
        scope = config_data if section is None else config_data[section]
        scope[key] = _env_value(env_name, value)

    missing = _find_missing(config_data)
    if missing:
        raise ConfigError(f"Please set {', '.join(missing)}.", missing=missing)

    backend = (config_data.get("snapshot") or {}).get("backend", "s3")
    if backend not in ("s3", "file"):
        raise ConfigError(f"Unknown snapshot backend: {backend}")

    try:
        return SyncConfig(**config_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
