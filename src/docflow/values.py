"""Core type definitions for document graphs.

This module defines the value types flowing through the document
pipeline and the single discriminator used by every tree walker to
classify a document node.

Every node of a parsed document is one of:
- a scalar (strings, numbers, booleans, dates, `None`);
- a sequence of nodes;
- a mapping of nodes;
- an include directive, a mapping with a single `include` string key.
"""

from collections.abc import Mapping, Sequence
from datetime import date, datetime
from enum import StrEnum
from typing import Any, Final

from docflow.names import INCLUDE_KEY

#: Scalars are atomic values produced by the YAML safe loader.
type Scalar = date | datetime | str | bytes | int | float | bool

#: A value is any node of a document or of a variable environment.
type Value = Scalar | Sequence['Value'] | Mapping[Any, 'Value'] | None

#: A document node is a value that came out of a parsed source.
type Node = Value

#: Variable environment mapping top-level names to values.
type Environment = Mapping[str, Value]

MAPPINGS = (dict,)
SCALARS = (date, datetime, str, bytes, int, float, bool)
SEQUENCES = (list, tuple)


class _Missing:
    """Marker for values that could not be found.

    `None` is a legal variable value (YAML `null`), so lookups report
    absence with this falsy singleton instead.
    """

    _instance: '_Missing | None' = None

    def __new__(cls) -> '_Missing':
        """Return the shared instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return '<missing>'


#: Result of a lookup that did not find anything.
Missing: Final = _Missing()


class NodeKind(StrEnum):
    """Kinds of document nodes."""

    SCALAR = 'scalar'
    SEQUENCE = 'sequence'
    MAPPING = 'mapping'
    INCLUDE = 'include'


def is_missing(value: Any) -> bool:  # noqa: ANN401
    """Check if a lookup result means "not found"."""
    return value is Missing


def classify(node: Any) -> NodeKind:  # noqa: ANN401
    """Classify a document node.

    A mapping is an include directive only when it has exactly one key,
    `include`, and that key holds a string. Any other mapping shape is
    a plain mapping, even if an `include` key is present among others.

    Args:
        node: Any node of a parsed document.

    Returns:
        The kind of the node. Anything that is neither a mapping nor
        a sequence is treated as a scalar.
    """
    if isinstance(node, MAPPINGS):
        if len(node) == 1 and isinstance(node.get(INCLUDE_KEY), str):
            return NodeKind.INCLUDE
        return NodeKind.MAPPING

    if isinstance(node, SEQUENCES):
        return NodeKind.SEQUENCE

    return NodeKind.SCALAR
