"""
Deep merge of partial themes.
Inputs are never mutated; every call returns a new Theme.
"""
from typing import AbstractSet, Dict, Iterable, Mapping, Optional

from .domain import Flat, Scale, Theme, ThemeCategory, TokenValue


def merge_token(base: TokenValue, override: TokenValue) -> TokenValue:
    """Scale + Scale unions the steps (override wins per step).
    Any other pairing takes the override as a whole.
    """
    if isinstance(base, Scale) and isinstance(override, Scale):
        steps = dict(base.steps)
        steps.update(override.steps)
        return Scale(steps)
    if isinstance(override, (Flat, Scale)):
        return override
    raise TypeError(f"Unsupported token value: {override!r}")


def _merge_colors(base: Mapping[str, TokenValue], override: Mapping[str, TokenValue]) -> Dict[str, TokenValue]:
    merged = dict(base)
    for key, value in override.items():
        merged[key] = merge_token(merged[key], value) if key in merged else value
    return merged


def merge_themes(
    base: Theme,
    override: Theme,
    categories: Optional[AbstractSet[ThemeCategory]] = None,
) -> Theme:
    """Merge override on top of base.

    Record buckets such as ``font_size`` are replaced per key as whole
    records. When ``categories`` is given, base contributes only to those
    categories; the others hold override's entries alone.
    """
    result = Theme.empty()
    for category in ThemeCategory:
        base_bucket = base.bucket(category) if categories is None or category in categories else {}
        override_bucket = override.bucket(category)
        if category is ThemeCategory.COLORS:
            merged = _merge_colors(base_bucket, override_bucket)
        else:
            merged = dict(base_bucket)
            merged.update(override_bucket)
        setattr(result, category.attr, merged)
    return result


def merge_all(themes: Iterable[Theme]) -> Theme:
    """Fold themes lowest precedence first."""
    result = Theme.empty()
    for theme in themes:
        result = merge_themes(result, theme)
    return result


def merge_variants(base: Mapping[str, Theme], override: Mapping[str, Theme]) -> Dict[str, Theme]:
    """Merge two variant maps name by name; one-sided variants merge against an empty Theme."""
    merged: Dict[str, Theme] = {}
    for name in list(base) + [n for n in override if n not in base]:
        merged[name] = merge_themes(base.get(name) or Theme.empty(), override.get(name) or Theme.empty())
    return merged
