"""
Programmatic theme overrides applied after merging.

Override keys select variants:

    "*"                      every variant
    "default" / "base"       the default variant
    "dark"                   a variant by name
    '[data-theme="dark"]'    variants whose selector equals or contains the key

Values are nested mappings or dot paths:

    {"colors.primary.500": "#ff0000"}
    {"colors": {"primary": {"500": "#ff0000"}}}
    {"radius.lg": {"value": "0", "force": True}}
"""
import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional

from .domain import DEFAULT_VARIANT, Flat, FontSize, Scale, Theme, ThemeCategory

logger = logging.getLogger(__name__)

MAX_NESTING_DEPTH = 10
ALL_VARIANTS = "*"
BASE_ALIASES = (DEFAULT_VARIANT, "base")


@dataclass(frozen=True)
class ParsedOverride:
    path: List[str]
    value: str
    force: bool = False

    @property
    def dotted(self) -> str:
        return ".".join(self.path)


def resolve_variant_names(key: str, variants: Mapping[str, Theme], selectors: Mapping[str, str]) -> List[str]:
    if key == ALL_VARIANTS:
        return list(variants)
    if key in BASE_ALIASES:
        return [DEFAULT_VARIANT]
    if key in variants:
        return [key]
    return [name for name, selector in selectors.items() if name in variants and key in selector]


def _leaf(value: Any) -> Optional[ParsedOverride]:
    """Normalize a leaf value, or None when value is a nested mapping."""
    if isinstance(value, Mapping):
        if "value" in value and not isinstance(value["value"], Mapping):
            return ParsedOverride([], str(value["value"]), bool(value.get("force", False)))
        return None
    return ParsedOverride([], str(value))


def parse_override_config(config: Mapping[Any, Any], prefix: Optional[List[str]] = None, depth: int = 0) -> List[ParsedOverride]:
    prefix = prefix or []
    if depth > MAX_NESTING_DEPTH:
        return []

    parsed: List[ParsedOverride] = []
    for raw_key, value in config.items():
        key = str(raw_key)
        path = key.split(".") if "." in key else prefix + [key]
        leaf = _leaf(value)
        if leaf is not None:
            parsed.append(replace(leaf, path=path))
        elif "." not in key:
            parsed.extend(parse_override_config(value, path, depth + 1))
    return parsed


def _apply_color(theme: Theme, path: List[str], override: ParsedOverride) -> bool:
    colors = theme.colors
    token = path[0]
    current = colors.get(token)
    if len(path) == 1:
        if current is None and not override.force:
            return False
        colors[token] = Flat(override.value)
        return True
    if len(path) != 2:
        return False

    step = path[1]
    if isinstance(current, Scale) and (step in current.steps or override.force):
        colors[token] = Scale({**current.steps, step: override.value})
        return True
    if override.force:
        colors[token] = Scale({step: override.value})
        return True
    return False


def _apply_font_size(theme: Theme, path: List[str], override: ParsedOverride) -> bool:
    sizes = theme.font_size
    current = sizes.get(path[0])
    if len(path) == 1:
        if current is None and not override.force:
            return False
        sizes[path[0]] = FontSize(override.value, current.line_height if current else None)
        return True
    if len(path) != 2 or path[1] not in ("size", "lineHeight", "line_height"):
        return False

    if path[1] == "size":
        if current is None and not override.force:
            return False
        sizes[path[0]] = FontSize(override.value, current.line_height if current else None)
        return True
    if current is None or (current.line_height is None and not override.force):
        return False
    sizes[path[0]] = replace(current, line_height=override.value)
    return True


def apply_override(theme: Theme, override: ParsedOverride) -> bool:
    """Apply one override in place. Returns False when the path does not exist."""
    if len(override.path) < 2:
        return False
    try:
        category = ThemeCategory.from_name(override.path[0])
    except ValueError:
        return False

    rest = override.path[1:]
    if category is ThemeCategory.COLORS:
        return _apply_color(theme, rest, override)
    if category is ThemeCategory.FONT_SIZE:
        return _apply_font_size(theme, rest, override)
    if len(rest) != 1:
        return False

    bucket = theme.bucket(category)
    if rest[0] not in bucket and not override.force:
        return False
    bucket[rest[0]] = override.value
    return True


def apply_overrides(
    variants: Mapping[str, Theme],
    selectors: Mapping[str, str],
    overrides: Mapping[str, Mapping[Any, Any]],
) -> Dict[str, Theme]:
    """Return new variant themes with overrides applied; inputs are left untouched."""
    result: Dict[str, Theme] = dict(variants)
    if not overrides:
        return result

    for key, config in overrides.items():
        names = resolve_variant_names(key, variants, selectors)
        if not names:
            logger.debug(f"No variants match override key '{key}'")
            continue

        parsed = parse_override_config(config)
        for name in names:
            if result[name] is variants[name]:
                result[name] = variants[name].copy()
            theme = result[name]
            applied = 0
            for override in parsed:
                if apply_override(theme, override):
                    applied += 1
                else:
                    logger.debug(f"Override skipped (path not found) in '{name}': {override.dotted}")
            logger.debug(f"Overrides for '{name}': {applied} applied, {len(parsed) - applied} skipped")
    return result
