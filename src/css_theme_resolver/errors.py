"""Exception hierarchy for theme resolution."""
from typing import Any, Dict, List, Optional


class ThemeResolverError(Exception):
    """Base exception for theme resolution errors.

    Every subclass carries a machine-readable ``code`` and a ``context``
    dict with the structured details of the failure.
    """
    code = "THEME_RESOLVER_ERROR"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class ImportDepthExceededError(ThemeResolverError):
    code = "IMPORT_DEPTH_EXCEEDED"

    def __init__(self, depth: int, max_depth: int, import_path: str):
        msg = f"Import depth exceeded maximum of {max_depth} levels at depth {depth}: {import_path}"
        super().__init__(msg, {"depth": depth, "max_depth": max_depth, "import_path": import_path})
        self.depth = depth
        self.max_depth = max_depth
        self.import_path = import_path


class CyclicImportError(ThemeResolverError):
    code = "CYCLIC_IMPORT"

    def __init__(self, chain: List[str]):
        msg = f"Circular import detected: {' -> '.join(chain)}"
        super().__init__(msg, {"chain": list(chain)})
        self.chain = list(chain)


class FileResolutionError(ThemeResolverError):
    code = "FILE_RESOLUTION_ERROR"

    def __init__(self, path: str, reason: str):
        msg = f"Failed to resolve file: {path} ({reason})"
        super().__init__(msg, {"path": path, "reason": reason})
        self.path = path
        self.reason = reason


class SourceParseError(ThemeResolverError):
    code = "CSS_PARSE_ERROR"

    def __init__(self, css_length: int, reason: str, position: Optional[int] = None, path: Optional[str] = None):
        where = f" in {path}" if path else ""
        msg = f"Failed to parse CSS{where}: {reason}"
        super().__init__(msg, {"css_length": css_length, "reason": reason, "position": position, "path": path})
        self.css_length = css_length
        self.reason = reason
        self.position = position
        self.path = path


class ConfigurationError(ThemeResolverError):
    """Raised when resolver options cannot be loaded or validated."""
    code = "CONFIGURATION_ERROR"

    def __init__(self, source: str, reason: str):
        msg = f"Invalid configuration from {source}: {reason}"
        super().__init__(msg, {"source": source, "reason": reason})
        self.source = source
        self.reason = reason
