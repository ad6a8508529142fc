"""YAML source loading.

Documents and included files are loaded with a dedicated subclass of
PyYAML's `SafeLoader`, so no Python objects can be constructed from a
source and loader customizations never leak into PyYAML globals.
"""

from typing import TYPE_CHECKING

from yaml import SafeLoader, load
from yaml.error import MarkedYAMLError, YAMLError

from docflow.errors import DocumentSyntaxError

if TYPE_CHECKING:
    from io import TextIOBase

if TYPE_CHECKING:
    from docflow.values import Node


class DocumentLoader(SafeLoader):
    """Safe YAML loader used for documents and included files."""


def parse_source(content: 'TextIOBase | str', *, filename: str | None = None) -> 'Node':
    """Parse a single YAML document.

    Args:
        content: YAML content as a string or file-like object.
        filename: Optional source name for error locations.

    Returns:
        The parsed document graph. An empty source gives `None`.

    Raises:
        DocumentSyntaxError: If the content is not a single valid YAML document.
    """
    try:
        return load(content, Loader=DocumentLoader)

    except MarkedYAMLError as base:
        raise DocumentSyntaxError.from_yaml_error(base, filename=filename) from base

    except YAMLError as base:
        raise DocumentSyntaxError(f'Invalid YAML: {base}') from base
