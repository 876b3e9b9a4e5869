"""Data models for theme resolution."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

DEFAULT_VARIANT = "default"
ROOT_SELECTOR = ":root"


class ThemeCategory(Enum):
    """Closed set of token buckets. Values are the serialized (camelCase) names."""
    COLORS = "colors"
    SPACING = "spacing"
    FONTS = "fonts"
    FONT_SIZE = "fontSize"
    FONT_WEIGHT = "fontWeight"
    TRACKING = "tracking"
    LEADING = "leading"
    BREAKPOINTS = "breakpoints"
    CONTAINERS = "containers"
    RADIUS = "radius"
    SHADOWS = "shadows"
    INSET_SHADOWS = "insetShadows"
    DROP_SHADOWS = "dropShadows"
    TEXT_SHADOWS = "textShadows"
    BLUR = "blur"
    PERSPECTIVE = "perspective"
    ASPECT = "aspect"
    EASE = "ease"
    ANIMATIONS = "animations"
    DEFAULTS = "defaults"
    KEYFRAMES = "keyframes"

    @property
    def attr(self) -> str:
        """Attribute name on Theme (snake_case)."""
        return self.name.lower()

    @classmethod
    def from_name(cls, name: str) -> 'ThemeCategory':
        """Look up a category by serialized or attribute name."""
        for category in cls:
            if name in (category.value, category.attr):
                return category
        raise ValueError(f"Unknown theme category '{name}'")


@dataclass(frozen=True)
class Flat:
    """A single opaque token value."""
    value: str


@dataclass(frozen=True)
class Scale:
    """A token made of named steps, e.g. shades 50..950."""
    steps: Mapping[str, str] = field(default_factory=dict)


TokenValue = Union[Flat, Scale]


@dataclass(frozen=True)
class FontSize:
    size: str
    line_height: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data = {"size": self.size}
        if self.line_height is not None:
            data["lineHeight"] = self.line_height
        return data


@dataclass
class Theme:
    """Category-keyed token set. Every category is always present."""
    colors: Dict[str, TokenValue] = field(default_factory=dict)
    spacing: Dict[str, str] = field(default_factory=dict)
    fonts: Dict[str, str] = field(default_factory=dict)
    font_size: Dict[str, FontSize] = field(default_factory=dict)
    font_weight: Dict[str, str] = field(default_factory=dict)
    tracking: Dict[str, str] = field(default_factory=dict)
    leading: Dict[str, str] = field(default_factory=dict)
    breakpoints: Dict[str, str] = field(default_factory=dict)
    containers: Dict[str, str] = field(default_factory=dict)
    radius: Dict[str, str] = field(default_factory=dict)
    shadows: Dict[str, str] = field(default_factory=dict)
    inset_shadows: Dict[str, str] = field(default_factory=dict)
    drop_shadows: Dict[str, str] = field(default_factory=dict)
    text_shadows: Dict[str, str] = field(default_factory=dict)
    blur: Dict[str, str] = field(default_factory=dict)
    perspective: Dict[str, str] = field(default_factory=dict)
    aspect: Dict[str, str] = field(default_factory=dict)
    ease: Dict[str, str] = field(default_factory=dict)
    animations: Dict[str, str] = field(default_factory=dict)
    defaults: Dict[str, str] = field(default_factory=dict)
    keyframes: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> 'Theme':
        return cls()

    def bucket(self, category: ThemeCategory) -> Dict[str, Any]:
        return getattr(self, category.attr)

    def is_empty(self) -> bool:
        return not any(self.bucket(category) for category in ThemeCategory)

    def copy(self) -> 'Theme':
        """Copy with fresh bucket dicts. Values are immutable and shared."""
        return Theme(**{category.attr: dict(self.bucket(category)) for category in ThemeCategory})

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        data: Dict[str, Dict[str, Any]] = {}
        for category in ThemeCategory:
            bucket = self.bucket(category)
            if category is ThemeCategory.COLORS:
                data[category.value] = {
                    key: dict(value.steps) if isinstance(value, Scale) else value.value
                    for key, value in bucket.items()
                }
            elif category is ThemeCategory.FONT_SIZE:
                data[category.value] = {key: value.to_dict() for key, value in bucket.items()}
            else:
                data[category.value] = dict(bucket)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Any]]) -> 'Theme':
        """Build a Theme from plain mappings; missing categories stay empty.

        Colors accept strings (flat) or mappings (scale); font sizes accept a
        string or a ``{"size", "lineHeight"}`` mapping.
        """
        theme = cls()
        for name, entries in data.items():
            category = ThemeCategory.from_name(name)
            bucket = theme.bucket(category)
            for key, value in entries.items():
                if category is ThemeCategory.COLORS:
                    if isinstance(value, (Flat, Scale)):
                        bucket[key] = value
                    elif isinstance(value, Mapping):
                        bucket[key] = Scale({str(step): str(v) for step, v in value.items()})
                    else:
                        bucket[key] = Flat(str(value))
                elif category is ThemeCategory.FONT_SIZE:
                    if isinstance(value, FontSize):
                        bucket[key] = value
                    elif isinstance(value, Mapping):
                        bucket[key] = FontSize(
                            size=str(value["size"]),
                            line_height=value.get("lineHeight", value.get("line_height")),
                        )
                    else:
                        bucket[key] = FontSize(size=str(value))
                else:
                    bucket[key] = str(value)
        return theme


@dataclass(frozen=True)
class Declaration:
    """One custom-property declaration as written in a source file."""
    name: str
    value: str
    variant: str = DEFAULT_VARIANT
    source: str = "theme"  # 'theme' | 'root' | 'variant'
    selector: Optional[str] = None
    line: Optional[int] = None


@dataclass(frozen=True)
class ImportRecord:
    target: str
    source_path: Optional[str]
    index: int
    line: Optional[int] = None


@dataclass
class SourceDocument:
    """Everything the reader extracts from a single CSS source."""
    path: Optional[str] = None
    declarations: List[Declaration] = field(default_factory=list)
    imports: List[ImportRecord] = field(default_factory=list)
    keyframes: Dict[str, str] = field(default_factory=dict)
    selectors: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ContributingFile:
    path: str
    discovery_index: int
    depth: int = 0


@dataclass
class ImportGraph:
    """Result of an import walk.

    ``files`` is in cascade order: every import precedes its importer and the
    root comes last, so merging in list order lets later files win.
    """
    files: List[ContributingFile] = field(default_factory=list)
    documents: Dict[str, SourceDocument] = field(default_factory=dict)

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]

    def discovery_order(self) -> List[ContributingFile]:
        return sorted(self.files, key=lambda f: f.discovery_index)

    def ordered_documents(self) -> List[SourceDocument]:
        return [self.documents[f.path] for f in self.files]


@dataclass(frozen=True)
class DeprecationNotice:
    variable: str
    message: str
    replacement: str


@dataclass(frozen=True)
class UnresolvedVariable:
    """A var() reference still present in a declaration after substitution.

    ``likely_cause`` is "self-referential", "external" (framework runtime
    variables such as ``--tw-*``) or "unknown".
    """
    variable_name: str
    original_value: str
    referenced_variable: str
    fallback_value: Optional[str] = None
    source: str = "theme"
    variant: str = DEFAULT_VARIANT
    selector: Optional[str] = None
    likely_cause: str = "unknown"


@dataclass
class DefaultsCacheEntry:
    """Cached external defaults for one base path. ``theme=None`` is a negative entry."""
    theme: Optional[Theme] = None
    source_path: Optional[str] = None
    freshness: Optional[int] = None

    @property
    def is_absent(self) -> bool:
        return self.theme is None


@dataclass
class ResolveResult:
    files: List[str] = field(default_factory=list)
    variants: Dict[str, Theme] = field(default_factory=dict)
    selectors: Dict[str, str] = field(default_factory=dict)
    variables: List[Declaration] = field(default_factory=list)
    deprecations: List[DeprecationNotice] = field(default_factory=list)
    unresolved: List[UnresolvedVariable] = field(default_factory=list)

    @property
    def theme(self) -> Theme:
        return self.variants[DEFAULT_VARIANT]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": list(self.files),
            "variants": {name: theme.to_dict() for name, theme in self.variants.items()},
            "selectors": dict(self.selectors),
            "variables": [
                {"name": d.name, "value": d.value, "variant": d.variant, "source": d.source}
                for d in self.variables
            ],
            "deprecations": [
                {"variable": d.variable, "message": d.message, "replacement": d.replacement}
                for d in self.deprecations
            ],
            "unresolved": [
                {
                    "variableName": u.variable_name,
                    "originalValue": u.original_value,
                    "referencedVariable": u.referenced_variable,
                    "fallbackValue": u.fallback_value,
                    "source": u.source,
                    "variant": u.variant,
                    "selector": u.selector,
                    "likelyCause": u.likely_cause,
                }
                for u in self.unresolved
            ],
        }
