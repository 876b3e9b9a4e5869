"""
Resolver options and their loading from YAML files and environment variables.
"""
import logging
import os
from typing import Any, Dict, FrozenSet, List, Optional, Union

import yaml
from deepmerge import Merger
from pydantic import BaseModel, Field, ValidationError

from .domain import ThemeCategory
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_IMPORT_DEPTH = 10

ENV_RESOLVE_IMPORTS = "THEME_RESOLVER_RESOLVE_IMPORTS"
ENV_INCLUDE_DEFAULTS = "THEME_RESOLVER_INCLUDE_DEFAULTS"
ENV_MAX_IMPORT_DEPTH = "THEME_RESOLVER_MAX_IMPORT_DEPTH"
ENV_BASE_PATH = "THEME_RESOLVER_BASE_PATH"

TRUE_VALUES = ("true", "1", "yes", "on")
FALSE_VALUES = ("false", "0", "no", "off")

# Dicts merge, lists and scalars are replaced
_options_merger = Merger(
    [(dict, ["merge"]), (list, ["override"])],
    ["override"],
    ["override"],
)


class ExternalDefaultsOptions(BaseModel):
    """Which categories may take values from the framework defaults.

    Categories switched off keep only user-declared tokens.
    """
    colors: bool = True
    spacing: bool = True
    fonts: bool = True
    font_size: bool = True
    font_weight: bool = True
    tracking: bool = True
    leading: bool = True
    breakpoints: bool = True
    containers: bool = True
    radius: bool = True
    shadows: bool = True
    inset_shadows: bool = True
    drop_shadows: bool = True
    text_shadows: bool = True
    blur: bool = True
    perspective: bool = True
    aspect: bool = True
    ease: bool = True
    animations: bool = True
    defaults: bool = True
    keyframes: bool = True

    def enabled_categories(self) -> FrozenSet[ThemeCategory]:
        return frozenset(c for c in ThemeCategory if getattr(self, c.attr))


class ResolveOptions(BaseModel):
    """Options for a single theme resolution."""
    resolve_imports: bool = Field(default=True, description="Follow @import directives from the root file")
    include_external_defaults: Union[bool, ExternalDefaultsOptions] = Field(
        default=False,
        description="Layer the installed framework's default theme beneath user tokens",
    )
    max_import_depth: int = Field(default=DEFAULT_MAX_IMPORT_DEPTH, ge=0, description="Maximum @import hops from the root")
    base_path: Optional[str] = Field(default=None, description="Directory for inline CSS imports and framework lookup")
    resolve_variables: bool = Field(default=True, description="Substitute var() references in token values")
    overrides: Dict[str, Dict[str, Any]] = Field(default_factory=dict, description="Post-merge overrides keyed by variant or selector")
    skip_import_prefixes: List[str] = Field(default_factory=lambda: ["tailwindcss"], description="Import targets that name packages, not files")
    defaults_package: str = Field(default="tailwindcss", description="Package directory under node_modules")
    defaults_theme_file: str = Field(default="theme.css", description="Theme file inside the package")

    def defaults_options(self) -> Optional[ExternalDefaultsOptions]:
        """Normalized defaults toggles, or None when defaults are disabled."""
        value = self.include_external_defaults
        if value is False:
            return None
        if value is True:
            return ExternalDefaultsOptions()
        return value


def _parse_bool(value: Any, source: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigurationError(source, f"expected a boolean, got '{value}'")


def _parse_int(value: Any, source: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(source, f"expected an integer, got '{value}'")


def resolve_setting(arg: Any, env_key: Optional[str], config: Optional[Dict[str, Any]], config_key: str, default: Any) -> Any:
    """
    Resolve a setting from multiple sources in priority order:
    1. Direct argument (if not None)
    2. Environment variable
    3. Configuration dictionary
    4. Default value
    """
    if arg is not None:
        return arg

    if env_key:
        val = os.getenv(env_key)
        if val is not None:
            return val

    if config and config_key in config:
        return config[config_key]

    return default


def load_config_file(path: str) -> Dict[str, Any]:
    """Read resolver options from a YAML file.

    Options may sit at the top level or under a ``theme_resolver`` key.
    """
    if not os.path.exists(path):
        raise ConfigurationError(path, "file not found")

    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(path, f"YAML parsing error: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(path, "top-level YAML value must be a mapping")

    section = data.get("theme_resolver", data)
    if not isinstance(section, dict):
        raise ConfigurationError(path, "'theme_resolver' must be a mapping")

    logger.debug(f"Loaded resolver options from {path}: {sorted(section)}")
    return section


def load_options(config_file: Optional[str] = None, **overrides: Any) -> ResolveOptions:
    """Build ResolveOptions from defaults, a YAML file, env vars and keyword arguments.

    Precedence (highest first): keyword arguments, environment variables,
    the YAML file, built-in defaults.
    """
    merged: Dict[str, Any] = ResolveOptions().model_dump()
    if config_file:
        merged = _options_merger.merge(merged, load_config_file(config_file))

    resolve_imports = resolve_setting(
        overrides.pop("resolve_imports", None), ENV_RESOLVE_IMPORTS, merged, "resolve_imports", True
    )
    merged["resolve_imports"] = _parse_bool(resolve_imports, "resolve_imports")

    include_defaults = resolve_setting(
        overrides.pop("include_external_defaults", None), ENV_INCLUDE_DEFAULTS, merged, "include_external_defaults", False
    )
    if not isinstance(include_defaults, (dict, ExternalDefaultsOptions)):
        include_defaults = _parse_bool(include_defaults, "include_external_defaults")
    merged["include_external_defaults"] = include_defaults

    max_depth = resolve_setting(
        overrides.pop("max_import_depth", None), ENV_MAX_IMPORT_DEPTH, merged, "max_import_depth", DEFAULT_MAX_IMPORT_DEPTH
    )
    merged["max_import_depth"] = _parse_int(max_depth, "max_import_depth")

    merged["base_path"] = resolve_setting(overrides.pop("base_path", None), ENV_BASE_PATH, merged, "base_path", None)

    for key, value in overrides.items():
        if value is not None:
            merged[key] = value

    try:
        return ResolveOptions(**merged)
    except ValidationError as e:
        raise ConfigurationError(config_file or "arguments", str(e)) from e
