from .domain import (
    DEFAULT_VARIANT,
    ContributingFile,
    Declaration,
    DefaultsCacheEntry,
    DeprecationNotice,
    Flat,
    FontSize,
    ImportGraph,
    ImportRecord,
    ResolveResult,
    Scale,
    SourceDocument,
    Theme,
    ThemeCategory,
    TokenValue,
    UnresolvedVariable,
)
from .errors import (
    ThemeResolverError,
    ImportDepthExceededError,
    CyclicImportError,
    FileResolutionError,
    SourceParseError,
    ConfigurationError,
)
from .lru_cache import LRUCache, NOT_FOUND
from .config import ResolveOptions, ExternalDefaultsOptions, load_options, load_config_file
from .reader import TokenSourceReader, CssTokenReader, get_default_reader
from .imports import ImportGraphResolver
from .variables import resolve_var_references, detect_unresolved_variables
from .normalizer import ThemeNormalizer, NormalizedDocument, Exclusion, apply_exclusions, theme_to_declarations
from .merge import merge_themes, merge_all, merge_variants
from .defaults import (
    ExternalDefaultsProvider,
    load_external_defaults,
    clear_external_defaults_cache,
    get_defaults_provider,
)
from .overrides import apply_overrides
from .resolver import ThemeResolver, resolve_theme

__all__ = [
    "DEFAULT_VARIANT",
    "ContributingFile",
    "Declaration",
    "DefaultsCacheEntry",
    "DeprecationNotice",
    "Flat",
    "FontSize",
    "ImportGraph",
    "ImportRecord",
    "ResolveResult",
    "Scale",
    "SourceDocument",
    "Theme",
    "ThemeCategory",
    "TokenValue",
    "UnresolvedVariable",
    "ThemeResolverError",
    "ImportDepthExceededError",
    "CyclicImportError",
    "FileResolutionError",
    "SourceParseError",
    "ConfigurationError",
    "LRUCache",
    "NOT_FOUND",
    "ResolveOptions",
    "ExternalDefaultsOptions",
    "load_options",
    "load_config_file",
    "TokenSourceReader",
    "CssTokenReader",
    "get_default_reader",
    "ImportGraphResolver",
    "resolve_var_references",
    "detect_unresolved_variables",
    "ThemeNormalizer",
    "NormalizedDocument",
    "Exclusion",
    "apply_exclusions",
    "theme_to_declarations",
    "merge_themes",
    "merge_all",
    "merge_variants",
    "ExternalDefaultsProvider",
    "load_external_defaults",
    "clear_external_defaults_cache",
    "get_defaults_provider",
    "apply_overrides",
    "ThemeResolver",
    "resolve_theme",
]
