"""
Theme normalizer.
Turns the custom-property declarations of one source into a partial Theme per variant.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping, Optional

from .domain import (
    DEFAULT_VARIANT,
    Declaration,
    DeprecationNotice,
    Flat,
    FontSize,
    Scale,
    SourceDocument,
    Theme,
    ThemeCategory,
)
from .lru_cache import NOT_FOUND, LRUCache
from .patterns import PATTERNS, kebab_to_camel
from .variables import resolve_var_references

logger = logging.getLogger(__name__)

INITIAL = "initial"
WILDCARD = "*"
MAX_NAME_CACHE_SIZE = 1000

NAMESPACES: Dict[str, ThemeCategory] = {
    "color": ThemeCategory.COLORS,
    "spacing": ThemeCategory.SPACING,
    "font": ThemeCategory.FONTS,
    "font-weight": ThemeCategory.FONT_WEIGHT,
    "text": ThemeCategory.FONT_SIZE,
    "tracking": ThemeCategory.TRACKING,
    "leading": ThemeCategory.LEADING,
    "breakpoint": ThemeCategory.BREAKPOINTS,
    "container": ThemeCategory.CONTAINERS,
    "radius": ThemeCategory.RADIUS,
    "shadow": ThemeCategory.SHADOWS,
    "inset-shadow": ThemeCategory.INSET_SHADOWS,
    "drop-shadow": ThemeCategory.DROP_SHADOWS,
    "text-shadow": ThemeCategory.TEXT_SHADOWS,
    "blur": ThemeCategory.BLUR,
    "perspective": ThemeCategory.PERSPECTIVE,
    "aspect": ThemeCategory.ASPECT,
    "ease": ThemeCategory.EASE,
    "animate": ThemeCategory.ANIMATIONS,
    "default": ThemeCategory.DEFAULTS,
}

# Checked before splitting on the first hyphen
MULTI_WORD_NAMESPACES = ("text-shadow", "inset-shadow", "drop-shadow", "font-weight")

# --spacing, --radius, ... : (key, suggested replacement)
SINGULAR_VARIABLES = {
    "spacing": ("base", "--spacing-base"),
    "blur": ("default", "--blur-sm or --blur-md"),
    "shadow": ("default", "--shadow-sm or --shadow-md"),
    "radius": ("default", "--radius-sm or --radius-md"),
}

_CATEGORY_NAMESPACES: Dict[ThemeCategory, str] = {category: ns for ns, category in NAMESPACES.items()}
_CAMEL_KEYED = (ThemeCategory.COLORS, ThemeCategory.DEFAULTS)


@dataclass(frozen=True)
class VariableName:
    namespace: str
    key: str
    category: ThemeCategory
    deprecation: Optional[DeprecationNotice] = None


@dataclass(frozen=True)
class Exclusion:
    """A namespace reset written as ``--<namespace>-<key>: initial``.

    ``category=None`` means every category (``--*: initial``). ``key`` is
    ``*`` for the whole bucket, ``<prefix>-*`` for a prefix, or one key.
    """
    category: Optional[ThemeCategory]
    key: str = WILDCARD


@dataclass
class NormalizedDocument:
    variants: Dict[str, Theme] = field(default_factory=dict)
    exclusions: Dict[str, List[Exclusion]] = field(default_factory=dict)
    warnings: List[DeprecationNotice] = field(default_factory=list)

    @property
    def default(self) -> Theme:
        return self.variants.get(DEFAULT_VARIANT) or Theme.empty()


_name_cache: LRUCache[str, Optional[VariableName]] = LRUCache(MAX_NAME_CACHE_SIZE)


def parse_variable_name(variable_name: str) -> Optional[VariableName]:
    """Split ``--font-weight-bold`` into namespace ``font-weight`` and key ``bold``.

    Returns None for names outside the known namespaces.
    """
    cached = _name_cache.get(variable_name)
    if cached is not NOT_FOUND:
        return cached

    parsed = _parse_variable_name(variable_name)
    _name_cache.set(variable_name, parsed)
    return parsed


def _parse_variable_name(variable_name: str) -> Optional[VariableName]:
    name = variable_name[2:] if variable_name.startswith("--") else variable_name

    if "-" not in name:
        singular = SINGULAR_VARIABLES.get(name)
        if singular is None:
            return None
        key, replacement = singular
        notice = DeprecationNotice(
            variable=variable_name,
            message=f"Singular variable '{variable_name}' is deprecated in Tailwind v4",
            replacement=replacement,
        )
        return VariableName(name, key, NAMESPACES[name], notice)

    for namespace in MULTI_WORD_NAMESPACES:
        if name.startswith(namespace + "-"):
            key = name[len(namespace) + 1:]
            return VariableName(namespace, key, NAMESPACES[namespace]) if key else None

    namespace, key = name.split("-", 1)
    category = NAMESPACES.get(namespace)
    if category is None or not key:
        return None
    return VariableName(namespace, key, category)


def _bucket_key(category: ThemeCategory, key: str) -> str:
    return kebab_to_camel(key) if category in _CAMEL_KEYED else key


def _remove_prefix(bucket: Dict, category: ThemeCategory, prefix: str) -> None:
    # Plain string prefix: lime-* covers lime-500 and lime-dark (stored as limeDark)
    target = _bucket_key(category, prefix)
    for key in [k for k in bucket if k.startswith(target)]:
        del bucket[key]


def _remove_key(bucket: Dict, category: ThemeCategory, key: str) -> None:
    if category is ThemeCategory.COLORS:
        match = PATTERNS["SCALE_STEP"].match(key)
        if match:
            token = kebab_to_camel(match.group("token"))
            current = bucket.get(token)
            if isinstance(current, Scale):
                steps = {s: v for s, v in current.steps.items() if s != match.group("step")}
                if steps:
                    bucket[token] = Scale(steps)
                else:
                    del bucket[token]
                return
    bucket.pop(_bucket_key(category, key), None)


def _exclude(theme: Theme, exclusion: Exclusion) -> None:
    categories = [exclusion.category] if exclusion.category is not None else list(ThemeCategory)
    for category in categories:
        bucket = theme.bucket(category)
        if exclusion.key == WILDCARD:
            bucket.clear()
        elif exclusion.key.endswith("-" + WILDCARD):
            _remove_prefix(bucket, category, exclusion.key[:-2])
        else:
            _remove_key(bucket, category, exclusion.key)


def apply_exclusions(theme: Theme, exclusions: Iterable[Exclusion]) -> Theme:
    """Return a copy of theme with every excluded token removed."""
    exclusions = list(exclusions)
    if not exclusions:
        return theme
    result = theme.copy()
    for exclusion in exclusions:
        _exclude(result, exclusion)
    return result


class _ThemeBuilder:
    """Accumulates one variant of one file in declaration order."""

    def __init__(self):
        self.theme = Theme.empty()
        self.exclusions: List[Exclusion] = []
        self._pending_line_heights: Dict[str, str] = {}

    def add(self, category: ThemeCategory, key: str, value: str) -> None:
        if category is ThemeCategory.COLORS:
            self._add_color(key, value)
        elif category is ThemeCategory.FONT_SIZE:
            self._add_font_size(key, value)
        else:
            self.theme.bucket(category)[_bucket_key(category, key)] = value

    def _add_color(self, key: str, value: str) -> None:
        colors = self.theme.colors
        match = PATTERNS["SCALE_STEP"].match(key)
        if match is None:
            colors[kebab_to_camel(key)] = Flat(value)
            return
        token = kebab_to_camel(match.group("token"))
        current = colors.get(token)
        steps = dict(current.steps) if isinstance(current, Scale) else {}
        steps[match.group("step")] = value
        colors[token] = Scale(steps)

    def _add_font_size(self, key: str, value: str) -> None:
        sizes = self.theme.font_size
        line_height = PATTERNS["FONT_SIZE_LINE_HEIGHT"].match(key)
        if line_height:
            size_key = line_height.group(1)
            if size_key in sizes:
                sizes[size_key] = replace(sizes[size_key], line_height=value)
            else:
                self._pending_line_heights[size_key] = value
            return
        current = sizes.get(key)
        previous = current.line_height if current else self._pending_line_heights.pop(key, None)
        sizes[key] = FontSize(size=value, line_height=previous)

    def exclude(self, exclusion: Exclusion) -> None:
        _exclude(self.theme, exclusion)
        if exclusion.category in (None, ThemeCategory.FONT_SIZE):
            self._pending_line_heights.clear()
        self.exclusions.append(exclusion)


class ThemeNormalizer:
    """Builds partial themes from a SourceDocument.

    ``variables`` maps a variant name to the ``--name -> value`` map used for
    var() substitution in that variant; variants without their own map use
    the default one. Passing None leaves values verbatim.

    ``aliases`` maps a raw variable (``--background``) to the themed
    variables that reference it (``--color-background``). Variant blocks that
    redefine the raw variable then update the themed token.
    """

    def normalize(
        self,
        document: SourceDocument,
        variables: Optional[Mapping[str, Mapping[str, str]]] = None,
        aliases: Optional[Mapping[str, List[str]]] = None,
    ) -> NormalizedDocument:
        builders: Dict[str, _ThemeBuilder] = {}
        warnings: Dict[str, DeprecationNotice] = {}

        for decl in document.declarations:
            builder = builders.setdefault(decl.variant, _ThemeBuilder())
            value = decl.value
            if variables is not None:
                variant_vars = variables.get(decl.variant) or variables.get(DEFAULT_VARIANT) or {}
                value = resolve_var_references(value, variant_vars, name=decl.name)

            for target in self._targets(decl, aliases):
                notice = self._apply(builder, target, value)
                if notice is not None:
                    warnings.setdefault(notice.variable, notice)

        if document.keyframes:
            builders.setdefault(DEFAULT_VARIANT, _ThemeBuilder()).theme.keyframes.update(document.keyframes)

        logger.debug(f"Normalized {document.path or '<inline>'}: variants={sorted(builders)}")
        return NormalizedDocument(
            variants={name: builder.theme for name, builder in builders.items()},
            exclusions={name: builder.exclusions for name, builder in builders.items() if builder.exclusions},
            warnings=list(warnings.values()),
        )

    @staticmethod
    def _targets(decl: Declaration, aliases: Optional[Mapping[str, List[str]]]) -> List[str]:
        if decl.variant != DEFAULT_VARIANT and aliases and decl.name in aliases:
            return list(aliases[decl.name])
        return [decl.name]

    @staticmethod
    def _apply(builder: _ThemeBuilder, name: str, value: str) -> Optional[DeprecationNotice]:
        is_initial = value.strip().lower() == INITIAL
        if name == "--" + WILDCARD:
            if is_initial:
                builder.exclude(Exclusion(None))
            return None

        parsed = parse_variable_name(name)
        if parsed is None:
            return None
        if is_initial:
            builder.exclude(Exclusion(parsed.category, parsed.key))
            return None
        if WILDCARD in parsed.key:
            return None

        builder.add(parsed.category, parsed.key, value)
        return parsed.deprecation


def build_aliases(declarations: Iterable[Declaration]) -> Dict[str, List[str]]:
    """Collect ``--color-background: var(--background)`` style links.

    Only default-variant declarations whose whole value is a single var()
    to a variable outside the known namespaces register an alias.
    """
    aliases: Dict[str, List[str]] = {}
    for decl in declarations:
        if decl.variant != DEFAULT_VARIANT:
            continue
        match = PATTERNS["SELF_REFERENCE"].match(decl.value)
        if not match:
            continue
        source = match.group(1)
        if parse_variable_name(decl.name) is None or parse_variable_name(source) is not None:
            continue
        targets = aliases.setdefault(source, [])
        if decl.name not in targets:
            targets.append(decl.name)
    return aliases


def _camel_to_kebab(value: str) -> str:
    return "".join(f"-{c.lower()}" if c.isupper() else c for c in value)


def theme_to_declarations(theme: Theme) -> List[Declaration]:
    """Turn a Theme back into default-variant declarations.

    Used to make external default tokens available to var() lookups.
    Keyframes have no variable form and are skipped.
    """
    declarations: List[Declaration] = []

    for key, token in theme.colors.items():
        if isinstance(token, Scale):
            for step, value in token.steps.items():
                declarations.append(Declaration(name=f"--color-{_camel_to_kebab(key)}-{step}", value=value))
        else:
            declarations.append(Declaration(name=f"--color-{_camel_to_kebab(key)}", value=token.value))

    for key, font_size in theme.font_size.items():
        declarations.append(Declaration(name=f"--text-{key}", value=font_size.size))
        if font_size.line_height is not None:
            declarations.append(Declaration(name=f"--text-{key}--line-height", value=font_size.line_height))

    for category in ThemeCategory:
        if category in (ThemeCategory.COLORS, ThemeCategory.FONT_SIZE, ThemeCategory.KEYFRAMES):
            continue
        namespace = _CATEGORY_NAMESPACES[category]
        for key, value in theme.bucket(category).items():
            if category is ThemeCategory.DEFAULTS:
                key = _camel_to_kebab(key)
            declarations.append(Declaration(name=f"--{namespace}-{key}", value=value))

    return declarations
