"""
CSS token source reader.
Turns one stylesheet into custom-property declarations, import records and keyframes.
"""
import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import tinycss2
from tinycss2.ast import (
    AtRule,
    Declaration as CssDeclaration,
    FunctionBlock,
    IdentToken,
    LiteralToken,
    ParseError,
    QualifiedRule,
    StringToken,
    URLToken,
    WhitespaceToken,
)

from .domain import DEFAULT_VARIANT, Declaration, ImportRecord, SourceDocument
from .errors import FileResolutionError, SourceParseError
from .lru_cache import NOT_FOUND, LRUCache
from .patterns import PATTERNS, variant_to_camel

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_CACHE_SIZE = 256
ROOT_SELECTORS = (":root", ":host")


class TokenSourceReader(ABC):
    """Reads one source file into a SourceDocument."""

    @abstractmethod
    async def read(self, path: str) -> SourceDocument:
        """Raise FileResolutionError when the file is missing or unreadable."""
        pass

    @abstractmethod
    def parse(self, css: str, path: Optional[str] = None) -> SourceDocument:
        pass


def extract_variant_name(selector: str) -> Optional[str]:
    """Derive a variant name from a selector or media query, or None.

    Only the first compound selector is inspected, so
    ``.theme-ocean .card`` yields ``theme-ocean``.
    """
    first_part = PATTERNS["COMBINATOR"].split(selector.strip())[0]

    parts: List[str] = PATTERNS["DATA_THEME"].findall(first_part)
    if not parts:
        match = PATTERNS["DATA_ATTR"].search(first_part)
        if match:
            parts.append(match.group(1))

    parts.extend(PATTERNS["CLASS_NAME"].findall(first_part))

    scheme = PATTERNS["COLOR_SCHEME"].search(selector)
    if scheme:
        parts.append(scheme.group(1))

    return ".".join(parts) if parts else None


def parse_import_target(prelude: list) -> Optional[str]:
    """Extract the path from ``"x"``, ``'x'``, ``url(x)`` or ``url("x")``."""
    for token in prelude:
        if isinstance(token, WhitespaceToken):
            continue
        if isinstance(token, (StringToken, URLToken)):
            return token.value
        if isinstance(token, FunctionBlock) and token.lower_name == "url":
            for arg in token.arguments:
                if isinstance(arg, StringToken):
                    return arg.value
            return None
        return None
    return None


def _offset(css: str, line: int, column: int) -> int:
    """Character offset of a 1-based line/column pair."""
    lines = css.splitlines(keepends=True)
    return sum(len(text) for text in lines[:max(line - 1, 0)]) + max(column - 1, 0)


def _join_wildcard_names(tokens: list) -> list:
    """Fold ``--color-`` followed by ``*`` into one ``--color-*`` ident.

    The tokenizer ends an ident at ``*``, which would otherwise turn
    namespace resets like ``--color-*: initial`` into parse errors.
    """
    joined: list = []
    for token in tokens:
        if (
            isinstance(token, LiteralToken)
            and token.value == "*"
            and joined
            and isinstance(joined[-1], IdentToken)
            and joined[-1].value.startswith("--")
            and joined[-1].value.endswith("-")
        ):
            prev = joined.pop()
            joined.append(IdentToken(prev.source_line, prev.source_column, prev.value + "*"))
        else:
            joined.append(token)
    return joined


def _block_contents(content: list) -> list:
    return tinycss2.parse_blocks_contents(
        _join_wildcard_names(content), skip_comments=True, skip_whitespace=True
    )


def _is_root_selector(selector: str) -> bool:
    parts = [part.strip() for part in selector.split(',')]
    return bool(parts) and all(part in ROOT_SELECTORS for part in parts)


class _DocumentBuilder:
    """Walks a tinycss2 node list and fills a SourceDocument."""

    def __init__(self, css: str, path: Optional[str]):
        self.css = css
        self.document = SourceDocument(path=path)

    def build(self, nodes: list) -> SourceDocument:
        for node in nodes:
            if isinstance(node, ParseError):
                position = _offset(self.css, node.source_line, node.source_column)
                raise SourceParseError(len(self.css), node.message, position, self.document.path)
            self._visit_top_level(node)
        return self.document

    def _visit_top_level(self, node) -> None:
        if isinstance(node, AtRule):
            keyword = node.lower_at_keyword
            if keyword == "import":
                self._add_import(node)
            elif keyword == "theme" and node.content is not None:
                self._collect_block(node.content, DEFAULT_VARIANT, "theme", "@theme")
            elif keyword == "keyframes":
                self._add_keyframes(node)
            elif keyword == "layer" and node.content is not None:
                for child in tinycss2.parse_rule_list(node.content, skip_comments=True, skip_whitespace=True):
                    if not isinstance(child, ParseError):
                        self._visit_top_level(child)
            elif keyword == "media" and node.content is not None:
                self._visit_media(node)
        elif isinstance(node, QualifiedRule):
            selector = tinycss2.serialize(node.prelude).strip()
            if _is_root_selector(selector):
                self._collect_block(node.content, DEFAULT_VARIANT, "root", selector)
                return
            raw_variant = extract_variant_name(selector)
            if raw_variant is not None:
                self._visit_variant_rule(node.content, raw_variant, selector)

    def _visit_media(self, node: AtRule) -> None:
        params = tinycss2.serialize(node.prelude).strip()
        raw_variant = extract_variant_name(params)
        if raw_variant is None:
            return
        selector = f"@media {params}"
        for child in _block_contents(node.content):
            if isinstance(child, QualifiedRule):
                self._collect_block(child.content, raw_variant, "variant", selector)
            elif isinstance(child, CssDeclaration):
                self._add_declaration(child, raw_variant, "variant", selector)

    def _visit_variant_rule(self, content: list, raw_variant: str, selector: str) -> None:
        for child in _block_contents(content):
            if isinstance(child, CssDeclaration):
                self._add_declaration(child, raw_variant, "variant", selector)
            elif isinstance(child, AtRule) and child.content is not None:
                if child.lower_at_keyword == "media":
                    params = tinycss2.serialize(child.prelude).strip()
                    self._collect_block(child.content, raw_variant, "variant", f"{selector} @media {params}")
                elif child.lower_at_keyword == "variant":
                    nested = tinycss2.serialize(child.prelude).strip()
                    if nested:
                        self._visit_variant_rule(
                            child.content, f"{raw_variant}.{nested}", _apply_variant_to_selector(selector, nested)
                        )

    def _collect_block(self, content: list, raw_variant: str, source: str, selector: str) -> None:
        for child in _block_contents(content):
            if isinstance(child, CssDeclaration):
                self._add_declaration(child, raw_variant, source, selector)
            elif isinstance(child, AtRule) and child.lower_at_keyword == "keyframes":
                self._add_keyframes(child)

    def _add_declaration(self, decl: CssDeclaration, raw_variant: str, source: str, selector: str) -> None:
        if not decl.name.startswith("--"):
            return
        value = tinycss2.serialize(decl.value).strip()
        self_ref = PATTERNS["SELF_REFERENCE"].match(value)
        if self_ref and self_ref.group(1) == decl.name:
            return

        variant = DEFAULT_VARIANT if raw_variant == DEFAULT_VARIANT else variant_to_camel(raw_variant)
        if variant != DEFAULT_VARIANT:
            self.document.selectors.setdefault(variant, selector)
        self.document.declarations.append(Declaration(
            name=decl.name,
            value=value,
            variant=variant,
            source=source,
            selector=selector,
            line=decl.source_line,
        ))

    def _add_import(self, node: AtRule) -> None:
        target = parse_import_target(node.prelude)
        if target is None:
            logger.debug(f"Ignoring unparseable @import at line {node.source_line} in {self.document.path}")
            return
        self.document.imports.append(ImportRecord(
            target=target,
            source_path=self.document.path,
            index=len(self.document.imports),
            line=node.source_line,
        ))

    def _add_keyframes(self, node: AtRule) -> None:
        name = tinycss2.serialize(node.prelude).strip()
        if name:
            self.document.keyframes[name] = tinycss2.serialize([node]).strip()


def _apply_variant_to_selector(selector: str, variant_name: str) -> str:
    """.theme-ocean .card + dark -> .theme-ocean.dark .card"""
    modified = []
    for sel in selector.split(','):
        parts = sel.strip().split()
        if not parts:
            modified.append(sel.strip())
            continue
        parts[0] = f"{parts[0]}.{variant_name}"
        modified.append(" ".join(parts))
    return ", ".join(modified)


def _read_bytes(path: str) -> bytes:
    with open(path, 'rb') as f:
        return f.read()


class CssTokenReader(TokenSourceReader):
    """tinycss2-backed reader with an LRU cache of parsed documents.

    Cache keys include the file's mtime and size, so an edited file is
    parsed again on the next read.
    """

    def __init__(self, cache_size: int = DEFAULT_DOCUMENT_CACHE_SIZE):
        self._cache: LRUCache[Tuple[str, int, int], SourceDocument] = LRUCache(cache_size)

    def parse(self, css: str, path: Optional[str] = None) -> SourceDocument:
        nodes = tinycss2.parse_stylesheet(css, skip_comments=True, skip_whitespace=True)
        return _DocumentBuilder(css, path).build(nodes)

    async def read(self, path: str) -> SourceDocument:
        abs_path = os.path.abspath(path)
        try:
            stat = await asyncio.to_thread(os.stat, abs_path)
        except OSError as e:
            raise FileResolutionError(abs_path, e.strerror or str(e)) from e

        key = (abs_path, stat.st_mtime_ns, stat.st_size)
        cached = self._cache.get(key)
        if cached is not NOT_FOUND:
            logger.debug(f"Document cache hit: {abs_path}")
            return cached

        try:
            raw = await asyncio.to_thread(_read_bytes, abs_path)
        except OSError as e:
            raise FileResolutionError(abs_path, e.strerror or str(e)) from e

        try:
            css = raw.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise SourceParseError(len(raw), "content is not valid UTF-8", e.start, abs_path) from e

        document = self.parse(css, abs_path)
        self._cache.set(key, document)
        logger.debug(
            f"Parsed {abs_path}: {len(document.declarations)} declarations, {len(document.imports)} imports"
        )
        return document

    def clear_cache(self) -> None:
        self._cache.clear()


_default_reader: Optional[CssTokenReader] = None


def get_default_reader() -> CssTokenReader:
    """Process-wide reader whose document cache is shared by ``resolve_theme`` calls."""
    global _default_reader
    if _default_reader is None:
        _default_reader = CssTokenReader()
    return _default_reader
