"""Configuration for the Virtual Closet outfit service and relay server."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Callable, Dict, Optional

DEFAULT_GEMINI_MODEL = "models/gemini-1.5-flash-002"
DEFAULT_RELAY_ENDPOINT = "http://localhost:3000/api/generate-outfit"
DEFAULT_EXTRACTION_ENDPOINT = "http://localhost:3000/api/extract-product"

_NULL_VALUES = {"", "null", "none", "~"}


def _as_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _as_optional_int(value: Optional[str]) -> Optional[int]:
    return None if value is None else int(value)


@dataclass
class ClosetConfig:
    """Settings for the outfit pipeline and the relay server.

    Timeouts and bounds follow the browser extension: a 15 second completion
    budget, one hour of result caching and a 6000 character prompt. Outfit
    prompts go to ``relay_endpoint`` and product extraction prompts to
    ``extraction_endpoint``, the two relay routes with their own system
    instructions. Setting ``relay_endpoint`` to ``None`` makes the app call
    Gemini directly.
    """

    relay_endpoint: Optional[str] = DEFAULT_RELAY_ENDPOINT
    extraction_endpoint: Optional[str] = DEFAULT_EXTRACTION_ENDPOINT
    request_timeout: float = 15.0
    cache_ttl_seconds: float = 3600.0
    max_items_per_category: Optional[int] = 15
    prompt_char_limit: int = 6000
    cache_fallback_results: bool = True
    model: str = DEFAULT_GEMINI_MODEL
    api_key: Optional[str] = None
    wardrobe_store_path: Optional[str] = None
    environment: str | None = None

    def __post_init__(self) -> None:
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.cache_ttl_seconds <= 0:
            raise ValueError("cache_ttl_seconds must be positive")
        if self.max_items_per_category is not None and self.max_items_per_category < 0:
            raise ValueError("max_items_per_category cannot be negative")

    @classmethod
    def from_env(cls) -> "ClosetConfig":
        """Build a config from environment variables over an optional YAML file.

        The file is ``APP_CONFIG_PATH`` or ``<CLOSET_CONFIG_DIR>/<APP_ENV>.yaml``
        (``config/environments`` by default). An upper-cased environment
        variable wins over the file key of the same name, so the Gemini key can
        come from ``GOOGLE_API_KEY`` at runtime.
        """

        env_name = os.getenv("APP_ENV")
        file_values: Dict[str, str] = {}
        path = cls._config_path(env_name)
        if path is not None and path.exists():
            file_values = cls._load_yaml_config(path)

        def read(key: str, convert: Callable[[str], object] = str, default: object = None):
            raw = os.getenv(key.upper(), file_values.get(key))
            if raw is None or raw.strip().lower() in _NULL_VALUES:
                return default
            return convert(raw.strip())

        def endpoint(key: str, default: str) -> Optional[str]:
            # An explicit empty or null endpoint disables that relay route.
            value = os.getenv(key.upper(), file_values.get(key, default)).strip()
            return None if value.lower() in _NULL_VALUES else value

        return cls(
            relay_endpoint=endpoint("relay_endpoint", DEFAULT_RELAY_ENDPOINT),
            extraction_endpoint=endpoint("extraction_endpoint", DEFAULT_EXTRACTION_ENDPOINT),
            request_timeout=read("request_timeout", float, 15.0),
            cache_ttl_seconds=read("cache_ttl_seconds", float, 3600.0),
            max_items_per_category=read("max_items_per_category", _as_optional_int, 15),
            prompt_char_limit=read("prompt_char_limit", int, 6000),
            cache_fallback_results=_as_bool(read("cache_fallback_results"), True),
            model=read("model", default=DEFAULT_GEMINI_MODEL),
            api_key=read("google_api_key"),
            wardrobe_store_path=read("wardrobe_store_path"),
            environment=env_name,
        )

    @staticmethod
    def _config_path(env_name: Optional[str]) -> Optional[Path]:
        explicit = os.getenv("APP_CONFIG_PATH")
        if explicit:
            return Path(explicit)
        if env_name:
            return Path(os.getenv("CLOSET_CONFIG_DIR", "config/environments")) / f"{env_name}.yaml"
        return None

    @staticmethod
    def _load_yaml_config(path: Path) -> Dict[str, str]:
        """Read flat ``key: value`` lines; nesting and lists are not supported."""

        config: Dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if value[:1] in {'"', "'"} and value.endswith(value[0]) and len(value) > 1:
                value = value[1:-1]
            elif " #" in value:
                value = value.split(" #", 1)[0].rstrip()
            config[key.strip()] = value
        return config
