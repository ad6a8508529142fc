"""Command-line utilities for docflow documents.

Documents are resolved against the variables file of a workspace
(the document directory by default) and either checked, rendered,
or described by the document JSON Schema.
"""

from logging import DEBUG, WARNING, basicConfig
from pathlib import Path
from typing import TYPE_CHECKING

from click import Path as PathParam
from click import argument, echo, group, option, pass_context

from docflow.diagnostics import diagnose
from docflow.jsonschema import SchemaGenerator
from docflow.render import render
from docflow.workspace import Workspace

if TYPE_CHECKING:
    from click import Context

    from docflow.core import PipelineResult

InputFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)

WorkspacePath = PathParam(
    exists=True,
    file_okay=False,
    path_type=Path,
)


def _resolve(source: Path, workspace: Path | None) -> tuple[str, Workspace, 'PipelineResult']:
    """Run the pipeline over a document file.

    Args:
        source: Document file.
        workspace: Workspace root; defaults to the document directory.

    Returns:
        Source text, loaded workspace and pipeline outcome. An unreadable
        document gives an empty text and a `parsing` failure.
    """
    root = Workspace(workspace or source.parent)
    pipeline = root.pipeline()

    try:
        text = source.read_text(encoding=root.settings.encoding)
    except (OSError, UnicodeDecodeError):
        return '', root, pipeline.run_file(source)

    return text, root, pipeline.run(text, source.parent, filename=str(source))


@group(help='Command-line utilities for docflow documents.')
@option('-v', '--verbose', is_flag=True, help='Print debug logs to standard error.')
def cli(verbose: bool) -> None:  # noqa: FBT001
    """Root CLI group for docflow tools."""
    basicConfig(
        level=DEBUG if verbose else WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )


@cli.command(
    name='check',
    help='Resolve a document and print its diagnostics.',
)
@option(
    '-w', '--workspace',
    type=WorkspacePath,
    default=None,
    help='Workspace root holding the variables file (default: document directory).',
)
@argument('source', type=InputFilepath)
@pass_context
def check(ctx: 'Context', source: Path, workspace: Path | None) -> None:
    """Print diagnostics and exit with status 1 on failure."""
    text, root, result = _resolve(source, workspace)

    for diagnostic in diagnose(text, result, root.variables):
        echo(f'{source}:{diagnostic}', err=not result.ok)

    if not result.ok:
        ctx.exit(1)

    echo(f'{source}: ok')


@cli.command(
    name='render',
    help='Resolve a document and print it as static YAML.',
)
@option(
    '-w', '--workspace',
    type=WorkspacePath,
    default=None,
    help='Workspace root holding the variables file (default: document directory).',
)
@argument('source', type=InputFilepath)
@pass_context
def render_document(ctx: 'Context', source: Path, workspace: Path | None) -> None:
    """Print the resolved document or the failure."""
    _, _, result = _resolve(source, workspace)

    if not result.ok:
        echo(f'{source}: {result}', err=True)
        ctx.exit(1)

    echo(render(result.document), nl=False)


@cli.command(
    name='schema',
    help='Print the docflow document JSON Schema to standard output.',
)
def print_schema() -> None:
    """Generate and print the JSON Schema."""
    echo(SchemaGenerator.make_schema())


if __name__ == '__main__':
    cli()
