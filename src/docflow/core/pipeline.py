"""Staged document pipeline.

The pipeline turns a raw source into a resolved, static document by
running four stages in a fixed order:

1. `parsing`: YAML text to a document graph;
2. `variable-resolution`: `${...}` placeholders substituted;
3. `include-processing`: include directives spliced in;
4. `structural-validation`: the minimal workflow shape checked.

Includes run after interpolation, so an include path may itself come
from a variable, while included content is never interpolated (it must
be static). The first failing stage stops the pipeline; its failure is
tagged with that stage and returned, not raised.
"""

from logging import getLogger
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Literal

from pydantic import ValidationError

from docflow.errors import DocumentError, Stage, StructuralMismatchError
from docflow.models import SchemaModel
from docflow.schema import WorkflowDocument
from docflow.settings import PipelineSettings
from docflow.values import MAPPINGS

from .includes import IncludeResolver
from .interpolation import interpolate
from .parser import parse_source

if TYPE_CHECKING:
    from collections.abc import Callable
    from os import PathLike

if TYPE_CHECKING:
    from docflow.values import Environment, Node

logger = getLogger(__name__)


class Success(SchemaModel):
    """Successful pipeline outcome carrying the resolved document."""

    ok: Literal[True] = True

    #: Resolved document graph.
    document: Any


class Failure(SchemaModel):
    """Failed pipeline outcome.

    Exactly one stage is blamed: the one that was running when
    the error was raised.
    """

    ok: Literal[False] = False

    #: Stage that failed.
    stage: Stage
    #: Human-readable failure message.
    message: str
    #: Underlying error.
    error: DocumentError

    def __str__(self) -> str:
        """Failure description prefixed with its stage."""
        return f'[{self.stage}] {self.message}'


#: Outcome of a pipeline run.
type PipelineResult = Success | Failure


def validate_structure(document: 'Node', *, filename: str | None = None) -> 'Node':
    """Check the minimal shape of a resolved document.

    Args:
        document: Resolved document graph.
        filename: Optional source name for error reports.

    Returns:
        The document, unchanged.

    Top-level keys that are not strings (`1: one`, `true: x`) are
    accepted as extra keys.

    Raises:
        StructuralMismatchError: If the document is not a mapping, or
            `steps` is not a sequence, or `variables` is not a mapping.
    """
    data = document
    if isinstance(document, MAPPINGS):
        data = {
            key if isinstance(key, str) else str(key): value
            for key, value in document.items()
        }

    try:
        WorkflowDocument.model_validate(data)

    except ValidationError as base:
        raise StructuralMismatchError.from_pydantic_error(
            base,
            data=document,
            filename=filename,
        ) from base

    return document


class DocumentPipeline:
    """Pipeline resolving sources against a variable environment.

    The environment is captured at construction and never modified;
    build a new pipeline to use a refreshed environment.

    Attributes:
        variables: Read-only variable environment.
        settings: Pipeline settings.
    """

    def __init__(self, variables: 'Environment | None' = None,
                 settings: PipelineSettings | None = None) -> None:
        """Initialize the pipeline.

        Args:
            variables: Variable environment. Defaults to an empty one.
            settings: Pipeline settings. Defaults are read from the
                process environment.
        """
        self.variables: Environment = MappingProxyType(dict(variables or {}))
        self.settings = settings or PipelineSettings()

    def run(self, content: str, base_dir: 'str | PathLike[str]', *,
            filename: str | None = None) -> PipelineResult:
        """Run every stage over a source text.

        Args:
            content: Raw YAML source.
            base_dir: Directory of the document. Include paths are
                resolved against it and must stay inside it.
            filename: Optional source name for error locations.

        Returns:
            `Success` with the resolved document, or `Failure` tagged
            with the first failing stage.
        """
        resolver = IncludeResolver(
            base_dir,
            extensions=self.settings.include_extensions,
            encoding=self.settings.encoding,
        )

        stages: tuple[tuple[Stage, Callable[[Any], Any]], ...] = (
            (Stage.PARSING, lambda source: parse_source(source, filename=filename)),
            (Stage.VARIABLE_RESOLUTION, lambda node: interpolate(node, self.variables)),
            (Stage.INCLUDE_PROCESSING, resolver.process),
            (Stage.STRUCTURAL_VALIDATION, lambda node: validate_structure(node, filename=filename)),
        )

        value: Any = content
        for stage, action in stages:
            logger.debug('Running stage %s on %s', stage, filename or '<source>')
            try:
                value = action(value)

            except DocumentError as error:
                logger.debug('Stage %s failed: %s', stage, error.message)
                return Failure(stage=stage, message=error.message, error=error)

        return Success(document=value)

    def run_file(self, path: 'str | PathLike[str]') -> PipelineResult:
        """Read a document file and run the pipeline over it.

        Args:
            path: Document file. Its directory is the include root.

        Returns:
            Pipeline outcome. An unreadable file fails the parsing stage.
        """
        path = Path(path)

        try:
            content = path.read_text(encoding=self.settings.encoding)

        except (OSError, UnicodeDecodeError) as base:
            error = DocumentError(f'Cannot read document {str(path)!r}: {base}')
            return Failure(stage=Stage.PARSING, message=error.message, error=error)

        return self.run(content, path.parent, filename=str(path))
