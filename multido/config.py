from __future__ import annotations
import os
import pathlib
import typing as t
import yaml

_DEFAULT_PATH = pathlib.Path("multido.config.yml")
_DRIVERS = ("mysql", "sqlite")


class ConfigError(RuntimeError):
    """Raised for any user‑visible configuration problem."""


class Environment:
    """
    A thin value‑object holding what is needed to open a connection and run
    batches against it.  Nothing here talks to the database.
    """

    def __init__(self, name: str, d: dict[str, t.Any]) -> None:
        self.name: str = name
        self.driver: str = d.get("driver", "mysql")
        if self.driver not in _DRIVERS:
            raise ConfigError(
                f"Environment {name!r}: unknown driver {self.driver!r} "
                f"(expected one of {', '.join(_DRIVERS)})"
            )

        try:
            self.database: str = str(d["database"])
            if self.driver == "mysql":
                self.host: str = d["host"]
                self.port: int = d.get("port", 3306)
                self.user: str = d["user"]
                raw_pwd: str = str(d.get("password", ""))
        except KeyError as exc:
            raise ConfigError(f"Environment {name!r}: missing key {exc.args[0]!r}") from exc

        if self.driver == "mysql":
            # Allow `${ENV_VAR}` syntax for secrets
            self.password: str = (
                os.getenv(raw_pwd[2:-1], "") if raw_pwd.startswith("${") else raw_pwd
            )

        # Batch behaviour
        self.rollback: bool = d.get("rollback", True)
        self.splitter_options: dict[str, bool] | None = d.get("splitter_options")

    def dsn(self) -> dict[str, t.Any]:
        """Return kwargs that mysql‑connector understands."""
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "database": self.database,
        }


def load(path: pathlib.Path | str | None = None, env: str | None = None) -> Environment:
    """
    Parse *path* (or the default YAML) and return an :class:`Environment`.
    """
    cfg_file = pathlib.Path(path) if path else _DEFAULT_PATH
    if not cfg_file.exists():
        raise ConfigError(f"Config file {cfg_file} not found.")

    with cfg_file.open() as fh:
        raw = yaml.safe_load(fh) or {}

    env_name = env or raw.get("default_env")
    if not env_name:
        raise ConfigError("No environment specified and no default_env in config")

    try:
        d = raw["environments"][env_name]
    except (KeyError, TypeError) as exc:
        raise ConfigError(f"Environment {env_name!r} not found in config") from exc
    if not isinstance(d, dict):
        raise ConfigError(f"Environment {env_name!r} must be a mapping")
    return Environment(env_name, d)
