"""Configuration system for Vista.

This module handles loading settings from environment variables and an INI
file, providing sensible defaults, and computing derived paths under the
Vista data directory.
"""

from configparser import ConfigParser
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
import os

from vista.constants.llm import (
    BASE_RETRY_DELAY_MS,
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_OLLAMA_ENDPOINT,
    DEFAULT_PROVIDER,
    DEFAULT_SUMMARIZATION_MODEL,
    DEFAULT_VISION_MODEL,
    MAX_ATTEMPTS,
    REQUEST_TIMEOUT_SECONDS,
    SETTLE_INTERVAL_SECONDS,
)
from vista.constants.search import (
    BASE_PROMPT_TOKENS,
    DEFAULT_RESULT_LIMIT,
    MAX_CONTEXT_TOKENS,
    PER_ITEM_OVERHEAD_TOKENS,
)


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# Schema: section -> key -> (type, default, min, max, description)
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, Any, Any, str]]] = {
    "provider": {
        "name": (str, DEFAULT_PROVIDER, None, None, "LLM provider routed through LiteLLM"),
        "request_timeout_seconds": (
            float,
            REQUEST_TIMEOUT_SECONDS,
            1.0,
            3600.0,
            "Deadline per provider call",
        ),
    },
    "models": {
        "vision_model": (str, DEFAULT_VISION_MODEL, None, None, "Model describing images"),
        "embedding_model": (str, DEFAULT_EMBEDDING_MODEL, None, None, "Model embedding text"),
        "summarization_model": (
            str,
            DEFAULT_SUMMARIZATION_MODEL,
            None,
            None,
            "Model summarizing results",
        ),
        "auto_flush_on_switch": (bool, True, None, None, "Unload resident models on switch"),
        "settle_interval_seconds": (
            float,
            SETTLE_INTERVAL_SECONDS,
            0.0,
            60.0,
            "Wait after flushing models",
        ),
    },
    "store": {
        "collection_name": (str, "image_vectors", None, None, "Vector collection name"),
        "vector_dimension": (int, 768, 1, 16384, "Embedding dimension D"),
        "timeout_seconds": (float, 30.0, 0.1, 600.0, "Deadline per store operation"),
    },
    "search": {
        "result_limit": (int, DEFAULT_RESULT_LIMIT, 1, 100, "Nearest neighbours per query"),
        "max_context_tokens": (
            int,
            MAX_CONTEXT_TOKENS,
            100,
            200_000,
            "Summary prompt token budget",
        ),
        "base_prompt_tokens": (
            int,
            BASE_PROMPT_TOKENS,
            0,
            10_000,
            "Tokens reserved for instructions",
        ),
        "per_item_overhead_tokens": (
            int,
            PER_ITEM_OVERHEAD_TOKENS,
            0,
            1000,
            "Formatting tokens per result",
        ),
    },
    "indexing": {
        "concurrency_limit": (int, 5, 1, 64, "In-flight per-image pipelines"),
        "enable_deduplication": (bool, True, None, None, "Skip images already up to date"),
        "force_reindex": (bool, False, None, None, "Reprocess every image"),
    },
    "retry": {
        "max_attempts": (int, MAX_ATTEMPTS, 1, 10, "Invocations per provider call"),
        "base_delay_ms": (int, BASE_RETRY_DELAY_MS, 0, 60_000, "Initial backoff delay"),
    },
    "paths": {
        "images_dir": (str, "my_images", None, None, "Image folder, relative to data dir"),
        "store_dir": (str, "chroma", None, None, "Vector store folder name"),
        "logs_dir": (str, "logs", None, None, "Logs directory name"),
    },
}


@dataclass(frozen=True)
class ProviderConfig:
    """Model provider configuration."""

    name: str
    request_timeout_seconds: float


@dataclass(frozen=True)
class ModelsConfig:
    """Model names and switching policy."""

    vision_model: str
    embedding_model: str
    summarization_model: str
    auto_flush_on_switch: bool
    settle_interval_seconds: float


@dataclass(frozen=True)
class StoreConfig:
    """Vector store configuration."""

    collection_name: str
    vector_dimension: int
    timeout_seconds: float


@dataclass(frozen=True)
class SearchConfig:
    """Search and context budget configuration."""

    result_limit: int
    max_context_tokens: int
    base_prompt_tokens: int
    per_item_overhead_tokens: int


@dataclass(frozen=True)
class IndexingConfig:
    """Indexing configuration."""

    concurrency_limit: int
    enable_deduplication: bool
    force_reindex: bool


@dataclass(frozen=True)
class RetryConfig:
    """Retry/backoff configuration for provider calls."""

    max_attempts: int
    base_delay_ms: int

    @property
    def base_delay_seconds(self) -> float:
        return self.base_delay_ms / 1000.0


@dataclass(frozen=True)
class PathsConfig:
    """Path names configuration."""

    images_dir: str
    store_dir: str
    logs_dir: str


_SECTION_TYPES: dict[str, type] = {
    "provider": ProviderConfig,
    "models": ModelsConfig,
    "store": StoreConfig,
    "search": SearchConfig,
    "indexing": IndexingConfig,
    "retry": RetryConfig,
    "paths": PathsConfig,
}


def _load_section(
    parser: ConfigParser, section: str, schema: dict[str, tuple[type, Any, Any, Any, str]]
) -> dict[str, Any]:
    """Load and validate a configuration section.

    Args:
        parser: ConfigParser instance with loaded config
        section: Section name to load
        schema: Schema definition for the section

    Returns:
        Dictionary of validated configuration values

    Raises:
        ConfigError: If validation fails
    """
    result = {}

    for key, (typ, default, min_val, max_val, _) in schema.items():
        if parser.has_option(section, key):
            raw_value = parser.get(section, key)
            value: bool | int | float | str
            try:
                if typ is bool:
                    value = raw_value.lower() in ("true", "1", "yes", "on")
                elif typ is int:
                    value = int(raw_value)
                elif typ is float:
                    value = float(raw_value)
                else:
                    value = raw_value
            except ValueError as e:
                raise ConfigError(
                    f"Invalid value for [{section}].{key}: {raw_value!r} (expected {typ.__name__})"
                ) from e
        else:
            value = default

        if typ in (int, float) and value is not None:
            if min_val is not None and value < min_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but minimum is {min_val}"
                )
            if max_val is not None and value > max_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but maximum is {max_val}"
                )

        result[key] = value

    return result


def _defaults(section: str) -> Any:
    values = {key: default for key, (_, default, _, _, _) in CONFIG_SCHEMA[section].items()}
    return _SECTION_TYPES[section](**values)


def _load_config(config_path: Optional[Path] = None) -> "Config":
    """Load configuration from an INI file (internal use only).

    Args:
        config_path: Path to config file. If None, uses defaults from schema.

    Returns:
        Config object with all sections populated (data_dir is a placeholder).

    Raises:
        ConfigError: If validation fails
    """
    parser = ConfigParser()

    if config_path and config_path.exists():
        parser.read(config_path)

    sections = {
        name: _SECTION_TYPES[name](**_load_section(parser, name, CONFIG_SCHEMA[name]))
        for name in CONFIG_SCHEMA
    }
    return Config(data_dir=Path("."), **sections)


@dataclass(frozen=True)
class Config:
    """Complete application configuration."""

    data_dir: Path
    ollama_endpoint: str = DEFAULT_OLLAMA_ENDPOINT
    # Directory path, ":memory:" or http(s)://host:port; empty means data_dir/store_dir
    store_target: str = ""
    images_path_override: Optional[str] = None

    provider: ProviderConfig = None  # type: ignore[assignment]
    models: ModelsConfig = None  # type: ignore[assignment]
    store: StoreConfig = None  # type: ignore[assignment]
    search: SearchConfig = None  # type: ignore[assignment]
    indexing: IndexingConfig = None  # type: ignore[assignment]
    retry: RetryConfig = None  # type: ignore[assignment]
    paths: PathsConfig = None  # type: ignore[assignment]

    def __post_init__(self):
        """Initialize section configs with defaults if not provided."""
        for name in CONFIG_SCHEMA:
            if getattr(self, name) is None:
                object.__setattr__(self, name, _defaults(name))

    @property
    def images_path(self) -> Path:
        """Folder scanned for images to index."""
        if self.images_path_override:
            return Path(self.images_path_override)
        return self.data_dir / self.paths.images_dir

    @property
    def store_location(self) -> str:
        """Connection target handed to the vector store."""
        return self.store_target or str(self.data_dir / self.paths.store_dir)

    @property
    def llm_log_path(self) -> Path:
        """Path to LLM query log file."""
        return self.data_dir / self.paths.logs_dir / "llm-queries.jsonl"


def _with_model_overrides(models: ModelsConfig) -> ModelsConfig:
    return ModelsConfig(
        vision_model=os.getenv("VISION_MODEL", models.vision_model),
        embedding_model=os.getenv("EMBEDDING_MODEL", models.embedding_model),
        summarization_model=os.getenv("SUMMARIZATION_MODEL", models.summarization_model),
        auto_flush_on_switch=models.auto_flush_on_switch,
        settle_interval_seconds=models.settle_interval_seconds,
    )


@lru_cache(maxsize=1)
def load_settings() -> Config:
    """Load settings from environment variables and config file.

    Settings are cached for the lifetime of the application.
    Use load_settings.cache_clear() to reload settings.

    Returns:
        Config object populated from environment variables and config file.

    Raises:
        ConfigError: If config.ini contains invalid values.
    """
    data_dir_str = os.getenv("VISTA_HOME")
    data_dir = Path(data_dir_str) if data_dir_str else Path.home() / ".vista"

    config_file = data_dir / "config.ini"
    try:
        config_exists = config_file.exists()
    except PermissionError:
        config_exists = False
    base_config = _load_config(config_file if config_exists else None)

    return Config(
        data_dir=data_dir,
        ollama_endpoint=os.getenv("OLLAMA_ENDPOINT", DEFAULT_OLLAMA_ENDPOINT),
        store_target=os.getenv("VISTA_STORE_TARGET", ""),
        images_path_override=os.getenv("VISTA_IMAGES_PATH"),
        provider=base_config.provider,
        models=_with_model_overrides(base_config.models),
        store=base_config.store,
        search=base_config.search,
        indexing=base_config.indexing,
        retry=base_config.retry,
        paths=base_config.paths,
    )
