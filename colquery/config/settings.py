"""
Configuration: packaged YAML defaults overridden by DB_* environment variables.
Built once per process and passed explicitly to the connection bootstrap.
"""
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Mapping

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"

# env var -> ConnectionConfig field
_ENV_VARS = {
    "DB_TYPE": "db_type",
    "DB_HOST": "host",
    "DB_PORT": "port",
    "DB_NAME": "database",
    "DB_USER": "user",
    "DB_PASSWORD": "password",
    "DB_DRIVER": "odbc_driver",
    "DB_PATH": "db_path",
}

DB_TYPE_ALIASES = {
    "duckdb": "duckdb",
    "postgres": "postgres",
    "postgresql": "postgres",
    "sqlserver": "sqlserver",
    "mssql": "sqlserver",
}


@dataclass(frozen=True)
class ConnectionConfig:
    db_type: str = "duckdb"
    host: str = "localhost"
    port: int | None = None
    database: str = "default"
    user: str = ""
    password: str = ""
    odbc_driver: str = "ODBC Driver 17 for SQL Server"
    db_path: str = ":memory:"

    def __post_init__(self):
        db_type = DB_TYPE_ALIASES.get(str(self.db_type).lower())
        if db_type is None:
            raise ValueError(f"Unsupported db_type {self.db_type!r}; use one of {sorted(DB_TYPE_ALIASES)}")
        object.__setattr__(self, "db_type", db_type)
        if self.port is not None:
            object.__setattr__(self, "port", int(self.port))

    @classmethod
    def from_mapping(cls, values: Mapping | None, env: Mapping[str, str] | None = None) -> "ConnectionConfig":
        """Build from a mapping (e.g. the YAML database section); env vars take precedence."""
        env = os.environ if env is None else env
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in (values or {}).items() if k in known and v is not None}
        for var, field_name in _ENV_VARS.items():
            if env.get(var):
                kwargs[field_name] = env[var]
        return cls(**kwargs)

    def __repr__(self) -> str:
        # keep credentials out of logs
        return (
            f"ConnectionConfig(db_type={self.db_type!r}, host={self.host!r}, port={self.port!r}, "
            f"database={self.database!r}, user={self.user!r}, db_path={self.db_path!r})"
        )


def load_config(config_path: str | Path | None = None) -> dict:
    """Read the YAML config file (packaged defaults when no path is given)."""
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_connection_config(config_path: str | Path | None = None, env: Mapping[str, str] | None = None) -> ConnectionConfig:
    config = load_config(config_path)
    return ConnectionConfig.from_mapping(config.get("database"), env=env)
