"""
External defaults provider.
Loads the design framework's shipped theme (node_modules/tailwindcss/theme.css)
and caches it per base path.
"""
import asyncio
import logging
import os
from typing import Dict, Optional

from .domain import DEFAULT_VARIANT, DefaultsCacheEntry, Theme
from .errors import ThemeResolverError
from .normalizer import ThemeNormalizer
from .reader import CssTokenReader, TokenSourceReader
from .variables import build_variable_maps

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE_NAME = "tailwindcss"
DEFAULT_THEME_FILE = "theme.css"


def _mtime_ns(path: str) -> Optional[int]:
    try:
        return os.stat(path).st_mtime_ns
    except OSError:
        return None


class ExternalDefaultsProvider:
    """Per-base-path cache of framework default themes.

    A successful load is cached with the source's mtime and returned by
    identity for as long as the mtime is unchanged. A failed load is cached
    as an absent entry and is not retried until ``clear`` is called.

    Concurrent ``load`` calls for the same base path share one in-flight
    task. The task is shielded, so cancelling one caller neither cancels the
    load for the others nor leaves a partial entry behind.
    """

    def __init__(
        self,
        reader: Optional[TokenSourceReader] = None,
        normalizer: Optional[ThemeNormalizer] = None,
        package_name: str = DEFAULT_PACKAGE_NAME,
        theme_file: str = DEFAULT_THEME_FILE,
    ):
        self._reader = reader or CssTokenReader()
        self._normalizer = normalizer or ThemeNormalizer()
        self._package_name = package_name
        self._theme_file = theme_file
        self._entries: Dict[str, DefaultsCacheEntry] = {}
        self._in_flight: Dict[str, asyncio.Task] = {}
        self._generation = 0

    def find_theme_file(self, base_path: str) -> Optional[str]:
        """Look for node_modules/<package>/<theme_file> in base_path and its parents."""
        directory = os.path.abspath(base_path)
        while True:
            candidate = os.path.join(directory, "node_modules", self._package_name, self._theme_file)
            if os.path.isfile(candidate):
                return candidate
            parent = os.path.dirname(directory)
            if parent == directory:
                return None
            directory = parent

    def entry(self, base_path: str) -> Optional[DefaultsCacheEntry]:
        return self._entries.get(os.path.abspath(base_path))

    async def load(self, base_path: str) -> Optional[Theme]:
        """Return the default Theme for base_path, or None when unavailable. Never raises."""
        key = os.path.abspath(base_path)
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load_or_validate(key, self._generation))
            self._in_flight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        else:
            logger.debug(f"Joining in-flight defaults load for {key}")
        return await asyncio.shield(task)

    def clear(self, base_path: Optional[str] = None) -> None:
        """Drop one base path's entry, or every entry when base_path is None."""
        self._generation += 1
        if base_path is None:
            self._entries.clear()
            self._in_flight.clear()
            logger.debug("Cleared all external defaults cache entries")
            return
        key = os.path.abspath(base_path)
        self._entries.pop(key, None)
        self._in_flight.pop(key, None)
        logger.debug(f"Cleared external defaults cache entry for {key}")

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _load_or_validate(self, key: str, generation: int) -> Optional[Theme]:
        entry = self._entries.get(key)
        if entry is not None:
            if entry.is_absent:
                logger.debug(f"External defaults cached as absent for {key}")
                return None
            current = await asyncio.to_thread(_mtime_ns, entry.source_path)
            if current == entry.freshness:
                logger.debug(f"External defaults cache hit for {key}")
                return entry.theme
            logger.debug(f"External defaults changed on disk, reloading: {entry.source_path}")

        entry = await self._load(key)
        if generation == self._generation:
            self._entries[key] = entry
        return entry.theme

    async def _load(self, key: str) -> DefaultsCacheEntry:
        path = await asyncio.to_thread(self.find_theme_file, key)
        if path is None:
            logger.debug(f"No {self._package_name}/{self._theme_file} found above {key}")
            return DefaultsCacheEntry()

        try:
            freshness = await asyncio.to_thread(_mtime_ns, path)
            document = await self._reader.read(path)
        except ThemeResolverError as e:
            logger.warning(f"Failed to load external defaults from {path}: {e}")
            return DefaultsCacheEntry(source_path=path)

        variables = build_variable_maps(document.declarations)
        normalized = self._normalizer.normalize(document, variables={DEFAULT_VARIANT: variables[DEFAULT_VARIANT]})
        theme = normalized.default
        logger.debug(f"Loaded external defaults from {path}")
        return DefaultsCacheEntry(theme=theme, source_path=path, freshness=freshness)


_default_provider: Optional[ExternalDefaultsProvider] = None


def get_defaults_provider() -> ExternalDefaultsProvider:
    """Process-wide provider used by ``resolve_theme``."""
    global _default_provider
    if _default_provider is None:
        _default_provider = ExternalDefaultsProvider()
    return _default_provider


async def load_external_defaults(base_path: str) -> Optional[Theme]:
    return await get_defaults_provider().load(base_path)


def clear_external_defaults_cache(base_path: Optional[str] = None) -> None:
    get_defaults_provider().clear(base_path)
