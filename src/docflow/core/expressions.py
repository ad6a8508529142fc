"""Path expression parsing and resolution.

A path expression addresses a value inside the variable environment
using dots for mapping keys and brackets for sequence indexes:

    user.name
    items[0].title
    matrix[1][2]

Resolution is intentionally tolerant: any missing key, invalid index,
or type mismatch results in `Missing` instead of raising an exception.
Turning `Missing` into a user-visible error is up to the caller.
"""

from typing import TYPE_CHECKING

from docflow.names import SEGMENT_DELIMITERS
from docflow.values import MAPPINGS, SEQUENCES, Missing

if TYPE_CHECKING:
    from collections.abc import Sequence

if TYPE_CHECKING:
    from docflow.values import Environment, Value

#: Parsed path expression.
type Path = tuple[str, ...]


def parse_expression(text: str) -> Path:
    """Split a path expression into segments.

    Surrounding whitespace is trimmed, the text is split on runs of
    `.`, `[` and `]`, and empty segments are dropped.

    Args:
        text: Path expression, e.g. `a.b[0].c`.

    Returns:
        Tuple of segments, e.g. `('a', 'b', '0', 'c')`. Empty for blank input.
    """
    return tuple(
        segment
        for segment in SEGMENT_DELIMITERS.split(text.strip())
        if segment
    )


def _step(value: 'Value', segment: str) -> 'Value':
    """Apply a single path segment to a value.

    Decimal segments index sequences. Against mappings, they are tried
    as a string key first and as an integer key second, so both
    `{'0': ...}` and `{0: ...}` can be addressed.
    """
    if isinstance(value, SEQUENCES):
        if not segment.isdecimal():
            return Missing
        index = int(segment)
        if index < len(value):
            return value[index]
        return Missing

    if isinstance(value, MAPPINGS):
        if segment in value:
            return value[segment]
        if segment.isdecimal() and (index := int(segment)) in value:
            return value[index]
        return Missing

    return Missing


def resolve_path(path: 'Sequence[str]', env: 'Environment') -> 'Value':
    """Resolve a parsed path against a variable environment.

    The first segment must be a direct key of the environment. Each
    following segment is applied to the current value; resolution stops
    with `Missing` as soon as the current value is `None`, a scalar, or
    lacks the key or index.

    Args:
        path: Parsed path segments.
        env: Variable environment.

    Returns:
        The resolved value (which may be `None`), or `Missing`.
    """
    if not path or path[0] not in env:
        return Missing

    value = env[path[0]]

    for segment in path[1:]:
        if value is None or value is Missing:
            return Missing
        value = _step(value, segment)

    return value


def resolve_expression(text: str, env: 'Environment') -> 'Value':
    """Parse and resolve a path expression.

    Args:
        text: Path expression.
        env: Variable environment.

    Returns:
        The resolved value, or `Missing`.
    """
    return resolve_path(parse_expression(text), env)


class PathLookup:
    """Resolver bound to a parsed path expression.

    Instances are callables taking an environment, so one parsed
    expression can be resolved against many environments.
    """

    def __init__(self, expression: str) -> None:
        """Parse the expression once.

        Args:
            expression: Path expression as written in the source.
        """
        self.expression = expression
        self.path = parse_expression(expression)

    def __call__(self, env: 'Environment') -> 'Value':
        """Resolve the path against an environment."""
        return resolve_path(self.path, env)

    def __eq__(self, other: object) -> bool:
        """Lookups are equal when their segments are equal."""
        if not isinstance(other, PathLookup):
            return NotImplemented
        return self.path == other.path

    def __hash__(self) -> int:
        return hash(self.path)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.expression!r})'
