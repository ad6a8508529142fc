"""Secure include resolution.

An include directive is a mapping with a single `include` key holding
a file path relative to the including document's directory:

    prompt:
      include: prompts/summary.yaml

The directive is replaced wholesale by the parsed content of the file.
Three rules keep includes predictable:

- the resolved path must stay inside the workspace root;
- included content must be static (no `${...}` placeholders), because
  includes are resolved after interpolation and would silently skip it;
- included content must not include further files. Nested composition
  is not supported, which keeps the traversal root fixed.

Files with an extension that is not recognized as markup are treated as
absent and resolve to `None`.
"""

from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from docflow.errors import (
    IncludeNotFoundError,
    IncludeReadError,
    NestedIncludeFoundError,
    PlaceholderInIncludedFileError,
    SecurityViolationError,
)
from docflow.names import INCLUDE_KEY, MARKUP_EXTENSIONS
from docflow.values import NodeKind, classify

from .interpolation import contains_placeholder
from .parser import parse_source

if TYPE_CHECKING:
    from collections.abc import Iterable
    from os import PathLike

if TYPE_CHECKING:
    from docflow.values import Node

logger = getLogger(__name__)


def is_include_directive(node: 'Node') -> bool:
    """Check if a node is an include directive.

    Args:
        node: Any document node.

    Returns:
        True for a mapping with exactly one key, `include`, holding a string.
    """
    return classify(node) is NodeKind.INCLUDE


def resolve_workspace_path(requested: str, root: 'str | PathLike[str]') -> Path:
    """Resolve an include path inside a workspace root.

    The check runs on the fully resolved path (`..` segments collapsed,
    symlinks followed), never on the raw string.

    Args:
        requested: Path as written in the include directive.
        root: Workspace root directory.

    Returns:
        Absolute resolved path of the requested file.

    Raises:
        SecurityViolationError: If the path resolves outside the root
            or is not a valid file system path.
        IncludeNotFoundError: If the path cannot be resolved.
    """
    base = Path(root).resolve()

    try:
        target = (base / requested).resolve()
    except ValueError as error:
        raise SecurityViolationError(requested, str(base)) from error
    except OSError as error:
        raise IncludeNotFoundError(requested) from error

    if not target.is_relative_to(base):
        raise SecurityViolationError(requested, str(base))

    return target


def validate_static(node: 'Node', *, filename: str | None = None) -> None:
    """Ensure included content is fully static.

    Args:
        node: Parsed content of an included file.
        filename: Optional included file name for error reports.

    Raises:
        PlaceholderInIncludedFileError: If any string scalar or mapping key
            carries the placeholder marker.
        NestedIncludeFoundError: If any node is an include directive.
    """
    match classify(node):
        case NodeKind.INCLUDE:
            raise NestedIncludeFoundError(node[INCLUDE_KEY], filename=filename)

        case NodeKind.MAPPING:
            for key, item in node.items():
                if isinstance(key, str) and contains_placeholder(key):
                    raise PlaceholderInIncludedFileError(key, filename=filename)
                validate_static(item, filename=filename)

        case NodeKind.SEQUENCE:
            for item in node:
                validate_static(item, filename=filename)

        case NodeKind.SCALAR if isinstance(node, str) and contains_placeholder(node):
            raise PlaceholderInIncludedFileError(node, filename=filename)


class IncludeResolver:
    """Resolver of include directives confined to a workspace root.

    Attributes:
        root: Workspace root directory, resolved to an absolute path.
        extensions: Lowercase file extensions parsed as markup.
        encoding: Encoding of included files.
    """

    def __init__(self, root: 'str | PathLike[str]',
                 extensions: 'Iterable[str]' = MARKUP_EXTENSIONS,
                 encoding: str = 'utf-8') -> None:
        """Initialize the resolver.

        Args:
            root: Workspace root directory. Include paths are resolved
                relative to it and must not escape it.
            extensions: File extensions parsed as markup.
            encoding: Encoding of included files.
        """
        self.root = Path(root).resolve()
        self.extensions = frozenset(item.lower() for item in extensions)
        self.encoding = encoding

    def load(self, requested: str) -> 'Node':
        """Load and validate an included file.

        Args:
            requested: Path as written in the include directive.

        Returns:
            Parsed static content, or `None` for non-markup files.

        Raises:
            SecurityViolationError: If the path escapes the root.
            IncludeNotFoundError: If the file does not exist.
            IncludeReadError: If the file cannot be read or decoded.
            DocumentSyntaxError: If the file is not valid YAML.
            PlaceholderInIncludedFileError: If the content has placeholders.
            NestedIncludeFoundError: If the content has include directives.
        """
        path = resolve_workspace_path(requested, self.root)

        try:
            found = path.is_file()
        except (OSError, ValueError) as base:
            raise IncludeNotFoundError(str(path)) from base

        if not found:
            raise IncludeNotFoundError(str(path))

        if path.suffix.lower() not in self.extensions:
            logger.debug('Skipping non-markup include %s', path)
            return None

        try:
            content = path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as base:
            raise IncludeReadError(f'Cannot read include file {str(path)!r}: {base}') from base

        node = parse_source(content, filename=str(path))
        validate_static(node, filename=str(path))

        logger.debug('Included %s', path)

        return node

    def process(self, node: 'Node') -> 'Node':
        """Replace every include directive of a graph with its content.

        The input graph is never mutated.

        Args:
            node: Document node.

        Returns:
            A new graph with include directives resolved.
        """
        match classify(node):
            case NodeKind.INCLUDE:
                return self.load(node[INCLUDE_KEY])
            case NodeKind.MAPPING:
                return {key: self.process(item) for key, item in node.items()}
            case NodeKind.SEQUENCE:
                return [self.process(item) for item in node]

        return node


def load_include(requested: str, root: 'str | PathLike[str]') -> 'Node':
    """Load and validate a single included file.

    See `IncludeResolver.load`.
    """
    return IncludeResolver(root).load(requested)


def process_includes(node: 'Node', root: 'str | PathLike[str]') -> 'Node':
    """Resolve every include directive of a graph against a root.

    See `IncludeResolver.process`.
    """
    return IncludeResolver(root).process(node)
