"""Settings loading and validation for the YAML-based hzctl config file."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from hzctl.core.errors import ConfigError

BACKEND_CHOICES = ("auto", "xrandr", "win32")
BACKEND_ENV_VAR = "HZCTL_BACKEND"
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


# YAML 1.1 bool resolver removed: `on`, `no` and friends stay strings.
UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

for first_char, mappings in list(UniqueKeyLoader.yaml_implicit_resolvers.items()):
    UniqueKeyLoader.yaml_implicit_resolvers[first_char] = [
        (tag, regexp)
        for tag, regexp in mappings
        if tag != "tag:yaml.org,2002:bool"
    ]


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class XrandrSettings:
    command: str = "xrandr"
    display: str | None = None


@dataclass(frozen=True)
class Settings:
    backend: str = "auto"
    jobs: int = 1
    xrandr: XrandrSettings = XrandrSettings()
    source: Path | None = None


def config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "hzctl/config.yaml"


def _load_schema_validator() -> Any:
    schema_text = resources.files("hzctl.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    # An empty file means "all defaults".
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at root")
    return loaded


def _build_settings(doc: dict[str, Any], source: Path | None) -> Settings:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        origin = source or "settings"
        raise ConfigError(f"Schema validation failed for {origin}{where}: {exc.message}") from exc

    xrandr_doc = doc.get("xrandr", {})
    return Settings(
        backend=doc.get("backend", "auto"),
        jobs=int(doc.get("jobs", 1)),
        xrandr=XrandrSettings(
            command=xrandr_doc.get("command", "xrandr"),
            display=xrandr_doc.get("display"),
        ),
        source=source,
    )


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from `path` (default: the XDG config file).

    A missing file yields defaults. `HZCTL_BACKEND` overrides the file's backend.
    """
    path = path or config_path()
    doc: dict[str, Any] = {}
    source: Path | None = None
    if path.is_file():
        doc = _read_yaml(path)
        source = path
        LOGGER.debug("Loaded settings from %s", path)

    env_backend = os.environ.get(BACKEND_ENV_VAR)
    if env_backend:
        doc = {**doc, "backend": env_backend.strip().lower()}

    return _build_settings(doc, source)
