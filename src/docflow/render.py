"""Serialization of resolved documents back to YAML text."""

from typing import TYPE_CHECKING

from yaml import SafeDumper, dump

if TYPE_CHECKING:
    from docflow.values import Node

RENDER_INDENT = 2


class DocumentDumper(SafeDumper):
    """Safe YAML dumper indenting sequences under their parent key."""

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:  # noqa: ARG002, FBT001, FBT002
        """Never emit indentless sequences."""
        return super().increase_indent(flow, False)


def render(document: 'Node') -> str:
    """Render a resolved document as block-style YAML.

    Key order is preserved and unicode is written as is, so the output
    parses back to an equal document.

    Args:
        document: Resolved document graph.

    Returns:
        YAML text ending with a newline.
    """
    return dump(
        document,
        Dumper=DocumentDumper,
        indent=RENDER_INDENT,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
