"""candle-feed settings: upstream access, cache size, normalization defaults and the HTTP server."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from candle_feed.core.exceptions import ConfigError
from candle_feed.core.models import PriceInterval, SplitAdjustment

# The chart endpoint is unofficial and rejects some non-browser agents.
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class UpstreamConfig(BaseModel):
    """Yahoo Finance chart endpoint access configuration."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "https://query1.finance.yahoo.com"
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 15.0
    exchange_suffix: str = ".NS"

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return v.rstrip("/")

    @field_validator("timeout")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be > 0")
        return v

    @field_validator("exchange_suffix")
    @classmethod
    def suffix_starts_with_dot(cls, v: str) -> str:
        if v and not v.startswith("."):
            raise ValueError("exchange_suffix must start with '.' (e.g. '.NS')")
        return v.upper()


class CacheConfig(BaseModel):
    """Response cache configuration."""

    model_config = ConfigDict(frozen=True)

    capacity: int = 100

    @field_validator("capacity")
    @classmethod
    def capacity_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("capacity must be >= 1")
        return v


class PricesConfig(BaseModel):
    """Normalization defaults."""

    model_config = ConfigDict(frozen=True)

    default_range: str = "2y"
    default_interval: str = PriceInterval.DAILY.value
    split_adjustment: SplitAdjustment = SplitAdjustment.FORWARD
    trim_incomplete_candles: bool = True


class APIConfig(BaseModel):
    """FastAPI server configuration."""

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 8000


class CandleFeedConfig(BaseModel):
    """Root configuration for the entire candle-feed service."""

    model_config = ConfigDict(frozen=True)

    upstream: UpstreamConfig = UpstreamConfig()
    cache: CacheConfig = CacheConfig()
    prices: PricesConfig = PricesConfig()
    api: APIConfig = APIConfig()


ENV_PREFIX = "CANDLE_FEED_"
CONFIG_ENV_VAR = f"{ENV_PREFIX}CONFIG"
DEFAULT_CONFIG_FILE = "candle-feed.yml"


def load_config(
    config_path: str | None = None,
    env_prefix: str = ENV_PREFIX,
) -> CandleFeedConfig:
    """Build the service configuration.

    Sources, highest priority first:

    1. ``CANDLE_FEED_<SECTION>__<KEY>`` environment variables, e.g.
       ``CANDLE_FEED_UPSTREAM__EXCHANGE_SUFFIX=.BO`` or
       ``CANDLE_FEED_CACHE__CAPACITY=50``
    2. The YAML file named by ``config_path``, ``$CANDLE_FEED_CONFIG``, or
       ``./candle-feed.yml`` if present
    3. Model defaults (Yahoo base URL, ``.NS`` suffix, 100-entry cache,
       ``2y``/``1d``, forward split adjustment)

    Environment values stay strings; pydantic coerces them to the field
    type, so ``"false"`` becomes a bool and a range token such as ``"5d"``
    is left alone.

    Raises
    ------
    ConfigError
        If the file is missing or malformed, or any value fails validation.
    """
    try:
        yaml_path = _resolve_config_path(config_path)
        base = _load_yaml(yaml_path) if yaml_path is not None else {}
        return CandleFeedConfig.model_validate(_merge_env_vars(base, env_prefix))
    except ConfigError:
        raise
    except Exception as e:
        raise ConfigError(str(e), context={"source": "load_config"}) from e


def _existing_file(raw: str, field: str) -> Path:
    path = Path(raw)
    if not path.is_file():
        raise ConfigError(
            f"Config file not found: {raw}",
            context={"field": field, "value": raw},
        )
    return path


def _resolve_config_path(explicit: str | None) -> Path | None:
    """Pick the YAML file: ``--config``, then ``$CANDLE_FEED_CONFIG``, then cwd."""
    if explicit is not None:
        return _existing_file(explicit, "config_path")

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return _existing_file(env_path, CONFIG_ENV_VAR)

    default = Path(DEFAULT_CONFIG_FILE)
    return default if default.is_file() else None


def _load_yaml(path: Path) -> dict:
    """Read a candle-feed YAML file; an empty file means all defaults."""
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse YAML config: {e}",
            context={"field": "config_file", "value": str(path)},
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"YAML config must be a mapping of sections, got {type(data).__name__}",
            context={"field": "config_file", "value": str(path)},
        )
    return data


def _merge_env_vars(base: dict, prefix: str) -> dict:
    """Overlay ``<prefix><SECTION>__<KEY>`` variables onto ``base``.

    Sections from ``base`` are copied before being written to, so the
    parsed YAML dict is never modified. The config-file variable itself is
    not a setting and is skipped.
    """
    result = dict(base)

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        parts = [p.lower() for p in key[len(prefix) :].split("__")]
        if parts == ["config"]:
            continue

        target = result
        for part in parts[:-1]:
            section = target.get(part)
            target[part] = dict(section) if isinstance(section, dict) else {}
            target = target[part]
        target[parts[-1]] = value

    return result
