"""Client configuration loading and validation."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from hapticctl.core.connection import DEFAULT_CLIENT_NAME, DEFAULT_SERVER_URL
from hapticctl.core.errors import ConfigLoadError, ConfigValidationError
from hapticctl.core.model import DEFAULT_STRENGTH

SERVER_URL_ENV = "HAPTICCTL_SERVER_URL"
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class ClientConfig:
    server_url: str = DEFAULT_SERVER_URL
    client_name: str = DEFAULT_CLIENT_NAME
    default_strength: float = DEFAULT_STRENGTH
    connect_timeout_s: float = 10.0
    reply_timeout_s: float | None = 10.0
    ready_poll_interval_s: float = 0.5
    ready_poll_attempts: int = 10


def _load_schema_validator() -> Any:
    schema_text = resources.files("hapticctl.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def default_config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "hapticctl" / "config.yaml"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigValidationError(f"Config file {path} must contain a mapping at root")
    return loaded


def load_config(path: Path | str | None = None) -> ClientConfig:
    """Load config from `path`, or the XDG default location if it exists.

    An explicit `path` must exist. The HAPTICCTL_SERVER_URL environment variable
    overrides `server_url` in either case.
    """
    doc: dict[str, Any] = {}
    if path is not None:
        source = Path(path)
        doc = _read_yaml(source)
    else:
        source = default_config_path()
        if source.is_file():
            doc = _read_yaml(source)

    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        where = ".".join(str(p) for p in exc.path)
        where = f" ({where})" if where else ""
        raise ConfigValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    config = ClientConfig(**doc)
    env_url = os.environ.get(SERVER_URL_ENV)
    if env_url:
        LOGGER.debug("Using server URL from %s", SERVER_URL_ENV)
        config = replace(config, server_url=env_url)
    return config
