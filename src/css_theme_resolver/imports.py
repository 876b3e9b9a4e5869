"""
@import graph walk.
Produces the contributing files of a root stylesheet in cascade order.
"""
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set, Tuple

from .config import DEFAULT_MAX_IMPORT_DEPTH
from .domain import ContributingFile, ImportGraph, SourceDocument
from .errors import CyclicImportError, ImportDepthExceededError
from .patterns import PATTERNS
from .reader import TokenSourceReader

logger = logging.getLogger(__name__)


@dataclass
class _WalkState:
    files: List[ContributingFile] = field(default_factory=list)
    documents: Dict[str, SourceDocument] = field(default_factory=dict)
    resolved: Set[str] = field(default_factory=set)
    discovered: int = 0

    def next_index(self) -> int:
        self.discovered += 1
        return self.discovered


class ImportGraphResolver:
    """Depth-first walk over @import directives.

    Imports are visited in declaration order and each one is fully resolved,
    nested imports included, before its next sibling. A file is appended to
    the result after all of its imports, so the root always comes last and
    merging ``graph.files`` in order lets later files win.

    Cycles are detected against the ancestor stack. A file that was already
    fully resolved through another branch contributes only once.
    """

    def __init__(
        self,
        reader: TokenSourceReader,
        max_depth: int = DEFAULT_MAX_IMPORT_DEPTH,
        resolve_imports: bool = True,
        skip_prefixes: Iterable[str] = ("tailwindcss",),
    ):
        self._reader = reader
        self._max_depth = max_depth
        self._resolve_imports = resolve_imports
        self._skip_prefixes: Tuple[str, ...] = tuple(skip_prefixes)

    @property
    def max_depth(self) -> int:
        return self._max_depth

    async def resolve(self, root_path: str) -> ImportGraph:
        """Walk the imports of a root file.

        Raises:
            FileResolutionError: the root or an import cannot be read
            CyclicImportError: an import points back at one of its ancestors
            ImportDepthExceededError: the chain is deeper than max_depth
        """
        abs_root = os.path.abspath(root_path)
        document = await self._reader.read(abs_root)
        state = _WalkState()

        if self._resolve_imports:
            await self._walk(document, os.path.dirname(abs_root), [abs_root], 0, state)
        else:
            logger.debug(f"Import resolution disabled, using {abs_root} only")

        state.files.append(ContributingFile(path=abs_root, discovery_index=0, depth=0))
        state.documents[abs_root] = document
        logger.debug(f"Resolved {len(state.files)} file(s) from {abs_root}")
        return ImportGraph(files=state.files, documents=state.documents)

    async def resolve_document(self, document: SourceDocument, base_dir: str) -> ImportGraph:
        """Walk the imports of already-parsed text that has no file of its own.

        The inline root is not part of the returned graph; callers merge it
        after ``graph.files``.
        """
        state = _WalkState()
        if self._resolve_imports:
            await self._walk(document, os.path.abspath(base_dir), [], 0, state)
        return ImportGraph(files=state.files, documents=state.documents)

    def _should_skip(self, target: str) -> bool:
        if PATTERNS["REMOTE_IMPORT"].match(target):
            return True
        return any(target.startswith(prefix) for prefix in self._skip_prefixes)

    async def _walk(
        self,
        document: SourceDocument,
        base_dir: str,
        ancestors: List[str],
        depth: int,
        state: _WalkState,
    ) -> None:
        for record in document.imports:
            if self._should_skip(record.target):
                logger.debug(f"Skipping import '{record.target}' in {record.source_path}")
                continue

            path = os.path.abspath(os.path.join(base_dir, record.target))
            if path in ancestors:
                raise CyclicImportError(ancestors + [path])
            if path in state.resolved:
                logger.debug(f"Already resolved, skipping: {path}")
                continue

            child_depth = depth + 1
            if child_depth > self._max_depth:
                raise ImportDepthExceededError(child_depth, self._max_depth, path)

            discovery_index = state.next_index()
            logger.debug(f"Resolving import {path} (depth {child_depth})")
            child = await self._reader.read(path)

            ancestors.append(path)
            try:
                await self._walk(child, os.path.dirname(path), ancestors, child_depth, state)
            finally:
                ancestors.pop()

            state.resolved.add(path)
            state.files.append(ContributingFile(path=path, discovery_index=discovery_index, depth=child_depth))
            state.documents[path] = child
