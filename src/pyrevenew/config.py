"""Client configuration for pyrevenew."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from pyrevenew._constants import DEFAULT_REQUEST_TIMEOUT
from pyrevenew.exceptions import RevenewConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _split_ids(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclasses.dataclass(frozen=True)
class RevenewConfig:
    """SDK configuration.

    Parameters
    ----------
    app_name : str
        App name sent with every event so the backend can group
        transactions by app.
    host : str
        Host of the analytics backend (e.g. ``"192.168.1.1"``).
    port : int
        Port the backend API listens on (e.g. ``3022``).
    tracked_product_ids : tuple[str, ...]
        Product ids fetched from the store and considered when deciding
        whether the user holds an active subscription.
    request_timeout : float
        Total timeout in seconds for one log request.  Requests are never
        retried.
    state_path : Path or None
        JSON file holding the device identity and the last logged
        transaction id.  ``None`` keeps state in memory only.
    log_first_download : bool
        Report a download event the first time an identity is created.
    """

    app_name: str
    host: str
    port: int
    tracked_product_ids: tuple[str, ...] = ()
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    state_path: Path | None = None
    log_first_download: bool = True

    def __post_init__(self) -> None:
        # Accept any iterable of ids (lists are common) but store a tuple.
        if not isinstance(self.tracked_product_ids, tuple):
            object.__setattr__(self, "tracked_product_ids", tuple(self.tracked_product_ids))
        if self.state_path is not None and not isinstance(self.state_path, Path):
            object.__setattr__(self, "state_path", Path(self.state_path))

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def validate(self) -> None:
        """Raise :class:`RevenewConfigError` if the configuration is unusable."""
        if not self.app_name.strip():
            raise RevenewConfigError("app_name must be non-empty")
        if not self.host.strip():
            raise RevenewConfigError("host must be non-empty")
        if not 0 < self.port < 65536:
            raise RevenewConfigError(f"port must be between 1 and 65535, got {self.port}")
        if self.request_timeout <= 0:
            raise RevenewConfigError(f"request_timeout must be positive, got {self.request_timeout}")

    @classmethod
    def from_env(cls, **overrides: Any) -> RevenewConfig:
        """Create configuration from environment variables.

        Reads ``REVENEW_APP_NAME``, ``REVENEW_HOST`` and ``REVENEW_PORT``
        plus the optional ``REVENEW_*`` variables listed below.  Explicit
        keyword arguments override environment values.

        ``REVENEW_TRACKED_PRODUCT_IDS`` is a comma separated list,
        ``REVENEW_LOG_FIRST_DOWNLOAD`` accepts the usual boolean words.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in {
            "REVENEW_APP_NAME": "app_name",
            "REVENEW_HOST": "host",
        }.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        port_env = env.get("REVENEW_PORT")
        if port_env is not None and "port" not in overrides:
            try:
                config_kwargs["port"] = int(port_env)
            except ValueError as exc:
                raise RevenewConfigError(f"REVENEW_PORT is not an integer: {port_env!r}") from exc

        ids_env = env.get("REVENEW_TRACKED_PRODUCT_IDS")
        if ids_env is not None and "tracked_product_ids" not in overrides:
            config_kwargs["tracked_product_ids"] = _split_ids(ids_env)

        timeout_env = env.get("REVENEW_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        state_env = env.get("REVENEW_STATE_PATH")
        if state_env and "state_path" not in overrides:
            config_kwargs["state_path"] = Path(state_env).expanduser()

        if "log_first_download" not in overrides:
            config_kwargs["log_first_download"] = _env_bool(env.get("REVENEW_LOG_FIRST_DOWNLOAD"), True)

        config_kwargs.update(overrides)

        missing = [name for name in ("app_name", "host", "port") if name not in config_kwargs]
        if missing:
            raise RevenewConfigError(f"Missing configuration: {', '.join(missing)}")

        return cls(**config_kwargs)
