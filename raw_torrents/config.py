# raw_torrents/config.py

import configparser
import logging
import os
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from .services.stream_data import ProviderSource

# --- Constants ---
PROVIDER_TIMEOUT_SECONDS = 10.0
MAX_STREAMS = 50
USER_AGENT = "Stremio-Raw-Torrents/1.0"
DEFAULT_PROVIDERS_FILE = Path(__file__).resolve().parent / "providers.yaml"

# Setup basic logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)
logging.getLogger("httpx").setLevel(logging.WARNING)

# Provider tables are immutable for the process lifetime, so cache per file.
_provider_cache: dict[Path, tuple[ProviderSource, ...]] = {}


def load_provider_config(config_path: Path) -> tuple[ProviderSource, ...]:
    """Load and validate the YAML provider table.

    The file must contain a ``providers`` list whose entries define ``key``,
    ``url`` and ``name``. Results are cached per resolved path.
    """
    resolved_path = Path(config_path).resolve()
    cached = _provider_cache.get(resolved_path)
    if cached is not None:
        return cached

    if not resolved_path.exists():
        raise FileNotFoundError(f"Provider config not found: {resolved_path}")

    with resolved_path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    entries = data.get("providers") if isinstance(data, dict) else None
    if not isinstance(entries, list) or not entries:
        raise ValueError(f"Provider config {resolved_path} has no 'providers' list")

    required = {"key", "url", "name"}
    providers: list[ProviderSource] = []
    seen_keys: set[str] = set()
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"Provider entry {index} must be a mapping")
        missing = required - entry.keys()
        if missing:
            raise ValueError(
                f"Provider entry {index} missing keys: {', '.join(sorted(missing))}"
            )
        key = str(entry["key"]).strip()
        if key in seen_keys:
            raise ValueError(f"Duplicate provider key '{key}'")
        seen_keys.add(key)
        providers.append(
            ProviderSource(
                key=key,
                url=str(entry["url"]).strip().rstrip("/"),
                display_name=str(entry["name"]),
            )
        )

    result = tuple(providers)
    _provider_cache[resolved_path] = result
    logger.info(
        "[CONFIG] Loaded %d providers from %s.", len(result), resolved_path.name
    )
    return result


def get_configuration(
    config_path: str = "config.ini",
) -> tuple[tuple[ProviderSource, ...], dict[str, Any]]:
    """
    Reads the provider table and aggregator settings.

    ``config.ini`` is optional; when it is absent the built-in defaults and the
    packaged provider table are used. Invalid numeric values raise
    ``ValueError`` so misconfiguration is caught at startup.
    """
    settings: dict[str, Any] = {
        "timeout_seconds": PROVIDER_TIMEOUT_SECONDS,
        "max_results": MAX_STREAMS,
        "user_agent": USER_AGENT,
    }
    providers_file: Path = DEFAULT_PROVIDERS_FILE

    if os.path.exists(config_path):
        parser = configparser.ConfigParser()
        with open(config_path, encoding="utf-8") as f:
            parser.read_string(f.read())

        settings["timeout_seconds"] = _read_positive_number(
            parser, "timeout_seconds", settings["timeout_seconds"], float
        )
        settings["max_results"] = _read_positive_number(
            parser, "max_results", settings["max_results"], int
        )
        user_agent = parser.get("aggregator", "user_agent", fallback="").strip()
        if user_agent:
            settings["user_agent"] = user_agent

        providers_value = parser.get("aggregator", "providers_file", fallback="")
        if providers_value.strip():
            providers_file = Path(os.path.expanduser(providers_value.strip()))

        level_name = parser.get("logging", "level", fallback="").strip().upper()
        if level_name:
            level = logging.getLevelName(level_name)
            if not isinstance(level, int):
                raise ValueError(f"Unknown log level '{level_name}' in '{config_path}'")
            logging.getLogger().setLevel(level)
        logger.info(f"[CONFIG] Settings loaded from '{config_path}'.")
    else:
        logger.info(f"[CONFIG] '{config_path}' not found; using default settings.")

    providers = load_provider_config(providers_file)
    return providers, settings


def _read_positive_number(
    config: configparser.ConfigParser, option: str, default: Any, cast: type
) -> Any:
    raw = config.get("aggregator", option, fallback=None)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        raise ValueError(f"Invalid value for '{option}': {raw!r}") from None
    if value <= 0:
        raise ValueError(f"'{option}' must be positive, got {raw!r}")
    return value
