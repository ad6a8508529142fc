"""Placeholder interpolation over document graphs.

Every string scalar of a document may contain `${expression}`
placeholders. Interpolation replaces each of them with the string form
of the value found in the variable environment. A single unresolved
placeholder fails the whole operation: no blank substitution, no
partial result.

Substitution always produces strings, even when a placeholder makes up
the whole scalar: `count: ${limit}` becomes `count: '10'`.
"""

from datetime import date
from json import dumps
from typing import TYPE_CHECKING, NamedTuple

from docflow.errors import UnresolvedVariableError
from docflow.names import PLACEHOLDER_MARKER, PLACEHOLDER_PATTERN
from docflow.values import MAPPINGS, SEQUENCES, NodeKind, classify, is_missing

from .expressions import resolve_expression

if TYPE_CHECKING:
    from collections.abc import Iterator
    from re import Match

if TYPE_CHECKING:
    from docflow.values import Environment, Node, Value


class Placeholder(NamedTuple):
    """A placeholder occurrence inside a source text."""

    #: Expression between the braces, as written.
    expression: str
    #: Offset of the leading `$`.
    start: int
    #: Offset right after the closing brace.
    end: int


def find_placeholders(text: str) -> 'Iterator[Placeholder]':
    """Iterate over placeholders of a text in order of appearance.

    Args:
        text: Any text, typically a raw document source.

    Yields:
        Placeholder occurrences with their offsets.
    """
    for match in PLACEHOLDER_PATTERN.finditer(text):
        yield Placeholder(match.group('expression'), match.start(), match.end())


def contains_placeholder(value: str) -> bool:
    """Check if a string carries the placeholder marker."""
    return PLACEHOLDER_MARKER in value


def _jsonable(value: 'Value') -> 'Value':
    """Make a structured value serializable to JSON."""
    if isinstance(value, MAPPINGS):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, SEQUENCES):
        return [_jsonable(item) for item in value]
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode(errors='replace')
    return value


def stringify(value: 'Value') -> str:
    """Convert a resolved value to its substitution text.

    Args:
        value: Resolved variable value.

    Returns:
        YAML-flavoured text: `true`/`false` for booleans, `null` for
        `None`, ISO format for dates, compact JSON for structures.
    """
    match value:
        case str():
            return value
        case bool():
            return 'true' if value else 'false'
        case None:
            return 'null'
        case date():
            return value.isoformat()
        case bytes():
            return value.decode(errors='replace')

    if isinstance(value, (*MAPPINGS, *SEQUENCES)):
        return dumps(_jsonable(value), ensure_ascii=False, separators=(',', ':'))

    return str(value)


def interpolate_string(text: str, env: 'Environment') -> str:
    """Substitute every placeholder of a single string.

    Args:
        text: String scalar.
        env: Variable environment.

    Returns:
        The string with every placeholder replaced.

    Raises:
        UnresolvedVariableError: If any placeholder cannot be resolved.
    """
    def replace(match: 'Match[str]') -> str:
        expression = match.group('expression')
        value = resolve_expression(expression, env)
        if is_missing(value):
            raise UnresolvedVariableError(expression)
        return stringify(value)

    return PLACEHOLDER_PATTERN.sub(replace, text)


def interpolate(node: 'Node', env: 'Environment') -> 'Node':
    """Recursively interpolate every string scalar of a document graph.

    The input graph is never mutated: mappings and sequences are rebuilt
    with interpolated items, keys and order preserved. Mapping keys are
    not interpolated. Non-string scalars are returned unchanged.

    Args:
        node: Document node.
        env: Variable environment.

    Returns:
        A new document graph.

    Raises:
        UnresolvedVariableError: On the first unresolved placeholder.
    """
    match classify(node):
        case NodeKind.MAPPING | NodeKind.INCLUDE:
            return {key: interpolate(item, env) for key, item in node.items()}
        case NodeKind.SEQUENCE:
            return [interpolate(item, env) for item in node]

    if isinstance(node, str):
        return interpolate_string(node, env)

    return node
