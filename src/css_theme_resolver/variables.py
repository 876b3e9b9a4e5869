"""var() substitution for token values."""
import logging
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

import tinycss2
from tinycss2.ast import FunctionBlock, IdentToken, LiteralToken, ParenthesesBlock, WhitespaceToken
from tinycss2.serializer import serialize_identifier

from .domain import DEFAULT_VARIANT, Declaration, UnresolvedVariable

logger = logging.getLogger(__name__)

MAX_VAR_RESOLUTION_DEPTH = 100

# Prefix of variables injected by framework utilities at runtime
EXTERNAL_VARIABLE_PREFIX = "--tw-"


def _split_var_arguments(node: FunctionBlock) -> Tuple[Optional[str], Optional[list]]:
    """var(--name, fallback) -> ('--name', fallback nodes or None)"""
    args = node.arguments
    for i, token in enumerate(args):
        if isinstance(token, WhitespaceToken):
            continue
        if not (isinstance(token, IdentToken) and token.value.startswith("--")):
            return None, None
        rest = args[i + 1:]
        for j, tail in enumerate(rest):
            if isinstance(tail, LiteralToken) and tail.value == ",":
                return token.value, rest[j + 1:]
        return token.value, None
    return None, None


def _parse_value(value: str) -> list:
    return tinycss2.parse_component_value_list(value, skip_comments=True)


def _substitute(
    nodes: list,
    variables: Mapping[str, str],
    visited: FrozenSet[str],
    depth: int,
) -> str:
    parts: List[str] = []
    for node in nodes:
        if isinstance(node, FunctionBlock) and node.lower_name == "var":
            parts.append(_substitute_var(node, variables, visited, depth))
        elif isinstance(node, FunctionBlock):
            parts.append(f"{serialize_identifier(node.name)}({_substitute(node.arguments, variables, visited, depth)})")
        elif isinstance(node, ParenthesesBlock):
            parts.append(f"({_substitute(node.content, variables, visited, depth)})")
        else:
            parts.append(tinycss2.serialize([node]))
    return "".join(parts)


def _substitute_var(
    node: FunctionBlock,
    variables: Mapping[str, str],
    visited: FrozenSet[str],
    depth: int,
) -> str:
    name, fallback = _split_var_arguments(node)
    if name is None:
        return tinycss2.serialize([node])
    if name in visited:
        logger.debug(f"Circular var() reference left unresolved: {name}")
        return tinycss2.serialize([node])
    if name in variables:
        return resolve_var_references(variables[name], variables, _visited=visited | {name}, _depth=depth + 1)
    if fallback is not None:
        return _substitute(fallback, variables, visited, depth + 1).strip()
    return tinycss2.serialize([node])


def resolve_var_references(
    value: str,
    variables: Mapping[str, str],
    name: Optional[str] = None,
    _visited: FrozenSet[str] = frozenset(),
    _depth: int = 0,
) -> str:
    """Substitute every ``var(--name)`` in value, recursively.

    ``var(--name, fallback)`` uses the fallback when ``--name`` is unknown;
    fallbacks may nest further var() calls. References that cannot be
    resolved, and references that would loop back onto a variable already
    being expanded, are left verbatim. ``name`` is the variable that owns
    value, so its references to itself stay verbatim too.

    Example:
        >>> resolve_var_references("calc(var(--radius) - 4px)", {"--radius": "0.5rem"})
        'calc(0.5rem - 4px)'
    """
    if _depth >= MAX_VAR_RESOLUTION_DEPTH or "var(" not in value.lower():
        return value
    if name is not None:
        _visited = _visited | {name}
    return _substitute(_parse_value(value), variables, _visited, _depth)


def find_var_references(value: str) -> List[Tuple[str, Optional[str]]]:
    """List ``(variable, fallback)`` for every var() in value, outermost first."""
    if "var(" not in value.lower():
        return []

    found: List[Tuple[str, Optional[str]]] = []

    def walk(nodes: list) -> None:
        for node in nodes:
            if isinstance(node, FunctionBlock):
                if node.lower_name == "var":
                    name, fallback = _split_var_arguments(node)
                    if name is not None:
                        found.append((name, tinycss2.serialize(fallback).strip() if fallback is not None else None))
                walk(node.arguments)
            elif isinstance(node, ParenthesesBlock):
                walk(node.content)

    walk(_parse_value(value))
    return found


def _likely_cause(variable_name: str, referenced: str) -> str:
    if referenced == variable_name:
        return "self-referential"
    if referenced.startswith(EXTERNAL_VARIABLE_PREFIX):
        return "external"
    return "unknown"


def detect_unresolved_variables(
    originals: Iterable[Declaration],
    resolved: Iterable[Declaration],
) -> List[UnresolvedVariable]:
    """Report the var() references still present after substitution.

    ``originals`` and ``resolved`` are parallel lists of the same
    declarations before and after ``resolve_var_references``.
    """
    unresolved: List[UnresolvedVariable] = []
    for original, after in zip(originals, resolved):
        for referenced, fallback in find_var_references(after.value):
            unresolved.append(UnresolvedVariable(
                variable_name=original.name,
                original_value=original.value,
                referenced_variable=referenced,
                fallback_value=fallback,
                source=original.source,
                variant=original.variant,
                selector=original.selector,
                likely_cause=_likely_cause(original.name, referenced),
            ))
    return unresolved


def build_variable_maps(
    declarations: Iterable[Declaration],
    base: Optional[Mapping[str, str]] = None,
) -> Dict[str, Dict[str, str]]:
    """Group declarations into one name -> value map per variant.

    Each variant map starts from the default-variant map, so a variant that
    redefines ``--background`` shadows the default value and inherits the
    rest. Later declarations win.
    """
    declarations = list(declarations)
    default_map: Dict[str, str] = dict(base or {})
    for decl in declarations:
        if decl.variant == DEFAULT_VARIANT:
            default_map[decl.name] = decl.value

    maps: Dict[str, Dict[str, str]] = {DEFAULT_VARIANT: default_map}
    for decl in declarations:
        if decl.variant == DEFAULT_VARIANT:
            continue
        if decl.variant not in maps:
            maps[decl.variant] = dict(default_map)
        maps[decl.variant][decl.name] = decl.value
    return maps
