"""
Theme resolution entry point.
Chains the import walk, normalization, external defaults, merging and overrides.
"""
import logging
import os
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from .config import ResolveOptions
from .defaults import (
    DEFAULT_PACKAGE_NAME,
    DEFAULT_THEME_FILE,
    ExternalDefaultsProvider,
    get_defaults_provider,
)
from .domain import (
    DEFAULT_VARIANT,
    ROOT_SELECTOR,
    Declaration,
    DeprecationNotice,
    ResolveResult,
    SourceDocument,
    Theme,
    UnresolvedVariable,
)
from .errors import ConfigurationError, ThemeResolverError
from .imports import ImportGraphResolver
from .merge import merge_themes
from .normalizer import Exclusion, ThemeNormalizer, apply_exclusions, build_aliases, theme_to_declarations
from .overrides import apply_overrides
from .reader import TokenSourceReader, get_default_reader
from .variables import build_variable_maps, detect_unresolved_variables, resolve_var_references

logger = logging.getLogger(__name__)


class ThemeResolver:
    """Resolves a root stylesheet into per-variant themes.

    Precedence, lowest first: external defaults, imported files in cascade
    order, the root itself, overrides. Every non-default variant is layered
    on top of the final default theme, so variants inherit tokens they do
    not redefine.
    """

    def __init__(
        self,
        options: Optional[Union[ResolveOptions, Mapping[str, Any]]] = None,
        reader: Optional[TokenSourceReader] = None,
        defaults_provider: Optional[ExternalDefaultsProvider] = None,
        normalizer: Optional[ThemeNormalizer] = None,
    ):
        if options is None:
            options = ResolveOptions()
        elif not isinstance(options, ResolveOptions):
            try:
                options = ResolveOptions(**options)
            except ValidationError as e:
                raise ConfigurationError("arguments", str(e)) from e
        self.options = options
        self._reader = reader or get_default_reader()
        self._normalizer = normalizer or ThemeNormalizer()
        self._defaults_provider = defaults_provider

    def _defaults(self) -> ExternalDefaultsProvider:
        if self._defaults_provider is None:
            opts = self.options
            if opts.defaults_package == DEFAULT_PACKAGE_NAME and opts.defaults_theme_file == DEFAULT_THEME_FILE:
                self._defaults_provider = get_defaults_provider()
            else:
                self._defaults_provider = ExternalDefaultsProvider(
                    normalizer=self._normalizer,
                    package_name=opts.defaults_package,
                    theme_file=opts.defaults_theme_file,
                )
        return self._defaults_provider

    async def resolve(self, input: Optional[str] = None, css: Optional[str] = None) -> ResolveResult:
        """Resolve a theme from a file path or from raw CSS text.

        When both are given, ``css`` is parsed and ``input`` only anchors
        relative imports.

        Raises:
            ValueError: neither input nor css was given
            ThemeResolverError: any import, read or parse failure
        """
        if input is None and css is None:
            raise ValueError("Either 'input' or 'css' must be provided")

        try:
            return await self._resolve(input, css)
        except ThemeResolverError as e:
            logger.error(f"Theme resolution failed [{e.code}]: {e}")
            raise

    async def _resolve(self, input: Optional[str], css: Optional[str]) -> ResolveResult:
        opts = self.options
        walker = ImportGraphResolver(
            self._reader,
            max_depth=opts.max_import_depth,
            resolve_imports=opts.resolve_imports,
            skip_prefixes=opts.skip_import_prefixes,
        )

        if css is not None:
            root = self._reader.parse(css)
            if opts.base_path:
                base_dir = opts.base_path
            elif input is not None:
                base_dir = os.path.dirname(os.path.abspath(input))
            else:
                base_dir = os.getcwd()
            graph = await walker.resolve_document(root, base_dir)
            documents = graph.ordered_documents() + [root]
        else:
            graph = await walker.resolve(input)
            documents = graph.ordered_documents()
            base_dir = opts.base_path or os.path.dirname(graph.files[-1].path)

        defaults_theme = await self._load_defaults(base_dir)
        declarations = [decl for document in documents for decl in document.declarations]

        variable_maps = None
        if opts.resolve_variables:
            base_vars = {}
            if defaults_theme is not None:
                base_vars = {decl.name: decl.value for decl in theme_to_declarations(defaults_theme)}
            variable_maps = build_variable_maps(declarations, base=base_vars)
        aliases = build_aliases(declarations)

        variants, selectors, deprecations = self._fold(documents, defaults_theme, variable_maps, aliases)
        if opts.overrides:
            variants = apply_overrides(variants, selectors, opts.overrides)

        variables, unresolved = self._resolved_variables(declarations, variable_maps)
        if unresolved:
            logger.info(f"{len(unresolved)} var() reference(s) could not be resolved")

        logger.debug(f"Resolved {len(graph.files)} file(s) into variants {sorted(variants)}")
        return ResolveResult(
            files=graph.paths,
            variants=variants,
            selectors=selectors,
            variables=variables,
            deprecations=deprecations,
            unresolved=unresolved,
        )

    async def _load_defaults(self, base_dir: str) -> Optional[Theme]:
        defaults_options = self.options.defaults_options()
        if defaults_options is None:
            return None
        loaded = await self._defaults().load(base_dir)
        if loaded is None:
            logger.debug(f"No external defaults available for {base_dir}")
            return None
        # Disabled categories drop out of the defaults layer only
        return merge_themes(loaded, Theme.empty(), categories=defaults_options.enabled_categories())

    def _fold(
        self,
        documents: List[SourceDocument],
        defaults_theme: Optional[Theme],
        variable_maps: Optional[Dict[str, Dict[str, str]]],
        aliases: Dict[str, List[str]],
    ):
        default_theme = defaults_theme or Theme.empty()
        variant_partials: Dict[str, Theme] = {}
        variant_exclusions: Dict[str, List[Exclusion]] = {}
        selectors: Dict[str, str] = {DEFAULT_VARIANT: ROOT_SELECTOR}
        deprecations: Dict[str, DeprecationNotice] = {}

        for document in documents:
            normalized = self._normalizer.normalize(document, variable_maps, aliases)
            selectors.update(document.selectors)
            for notice in normalized.warnings:
                deprecations.setdefault(notice.variable, notice)

            for name, partial in normalized.variants.items():
                exclusions = normalized.exclusions.get(name, [])
                if name == DEFAULT_VARIANT:
                    default_theme = merge_themes(apply_exclusions(default_theme, exclusions), partial)
                    continue
                current = variant_partials.get(name) or Theme.empty()
                variant_partials[name] = merge_themes(apply_exclusions(current, exclusions), partial)
                variant_exclusions.setdefault(name, []).extend(exclusions)

        variants: Dict[str, Theme] = {DEFAULT_VARIANT: default_theme}
        for name, partial in variant_partials.items():
            inherited = apply_exclusions(default_theme, variant_exclusions.get(name, []))
            variants[name] = merge_themes(inherited, partial)
        return variants, selectors, list(deprecations.values())

    @staticmethod
    def _resolved_variables(
        declarations: List[Declaration],
        variable_maps: Optional[Dict[str, Dict[str, str]]],
    ) -> Tuple[List[Declaration], List[UnresolvedVariable]]:
        """Substituted declarations plus the var() references left over.

        Nothing is reported as unresolved when substitution is disabled.
        """
        if variable_maps is None:
            return list(declarations), []
        resolved = []
        for decl in declarations:
            variant_vars = variable_maps.get(decl.variant) or variable_maps[DEFAULT_VARIANT]
            resolved.append(replace(decl, value=resolve_var_references(decl.value, variant_vars, name=decl.name)))
        return resolved, detect_unresolved_variables(declarations, resolved)


async def resolve_theme(
    input: Optional[str] = None,
    css: Optional[str] = None,
    options: Optional[Union[ResolveOptions, Mapping[str, Any]]] = None,
) -> ResolveResult:
    """Resolve a theme with the process-wide reader and defaults cache.

    Example:
        result = await resolve_theme("src/styles/theme.css", options={"include_external_defaults": True})
        result.theme.colors["primary"]
        result.variants["dark"].colors["primary"]
    """
    return await ThemeResolver(options).resolve(input=input, css=css)
