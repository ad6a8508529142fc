"""Editor diagnostics for document sources.

Diagnostics turn pipeline failures and undefined placeholders into
positioned messages an editor can display. Positions are zero-based
lines and characters, like in the Language Server Protocol.

Precision is best-effort: YAML errors carry an exact mark, unresolved
variables are anchored at their first placeholder in the source, and
any other failure spans the whole document. Message and stage are
always exact.
"""

from enum import StrEnum
from typing import TYPE_CHECKING

from docflow.core import PathLookup, find_placeholders
from docflow.errors import Stage, UnresolvedVariableError
from docflow.models import SchemaModel
from docflow.values import is_missing

if TYPE_CHECKING:
    from docflow.core import Failure, PipelineResult
    from docflow.values import Environment

#: Source name of pipeline failures.
PIPELINE_SOURCE = 'docflow'

#: Source name of undefined placeholder warnings.
VARIABLES_SOURCE = 'vars'

#: Default maximum number of diagnostics per document.
MAX_PROBLEMS = 1000


class Severity(StrEnum):
    """Diagnostic severity."""

    ERROR = 'error'
    WARNING = 'warning'


class Position(SchemaModel):
    """Zero-based position in a text."""

    line: int
    character: int


class Range(SchemaModel):
    """Range between two positions of a text."""

    start: Position
    end: Position


class Diagnostic(SchemaModel):
    """A positioned message about a document source."""

    message: str
    severity: Severity
    range: Range
    source: str
    stage: Stage | None = None

    def __str__(self) -> str:
        """Compiler-style one-line representation."""
        start = self.range.start
        label = f'{self.source}/{self.stage}' if self.stage else self.source
        return f'{start.line + 1}:{start.character + 1}: {self.severity}: {self.message} [{label}]'


def offset_to_position(text: str, offset: int) -> Position:
    """Convert a character offset to a position.

    Args:
        text: Source text.
        offset: Character offset, clamped to the text bounds.

    Returns:
        Zero-based line and character.
    """
    offset = max(0, min(offset, len(text)))
    line = text.count('\n', 0, offset)
    line_start = text.rfind('\n', 0, offset) + 1

    return Position(line=line, character=offset - line_start)


def document_range(text: str) -> Range:
    """Range covering a whole text."""
    return Range(
        start=Position(line=0, character=0),
        end=offset_to_position(text, len(text)),
    )


def _line_range(text: str, line: int, column: int) -> Range:
    """Range from a position to the end of its line."""
    lines = text.splitlines() or ['']
    line = min(line, len(lines) - 1)
    column = min(column, len(lines[line]))

    return Range(
        start=Position(line=line, character=column),
        end=Position(line=line, character=max(column, len(lines[line]))),
    )


def failure_range(text: str, failure: 'Failure') -> Range:
    """Locate a pipeline failure in its source.

    Args:
        text: Source text of the document.
        failure: Pipeline failure.

    Returns:
        Best-effort range of the failure.
    """
    error = failure.error

    if isinstance(error, UnresolvedVariableError):
        for placeholder in find_placeholders(text):
            if placeholder.expression == error.expression:
                return Range(
                    start=offset_to_position(text, placeholder.start),
                    end=offset_to_position(text, placeholder.end),
                )

    elif failure.stage is Stage.PARSING and error.line_num is not None:
        return _line_range(text, error.line_num, error.column_num or 0)

    return document_range(text)


def diagnose_failure(text: str, failure: 'Failure') -> Diagnostic:
    """Turn a pipeline failure into an error diagnostic."""
    return Diagnostic(
        message=failure.message,
        severity=Severity.ERROR,
        range=failure_range(text, failure),
        source=PIPELINE_SOURCE,
        stage=failure.stage,
    )


def undefined_placeholders(text: str, variables: 'Environment', *,
                           limit: int = MAX_PROBLEMS) -> list[Diagnostic]:
    """Warn about every placeholder that the environment cannot resolve.

    The raw text is scanned, so placeholders in comments and mapping
    keys are reported too.

    Args:
        text: Source text of the document.
        variables: Variable environment.
        limit: Maximum number of diagnostics.

    Returns:
        Warning diagnostics, in source order.
    """
    diagnostics: list[Diagnostic] = []

    for placeholder in find_placeholders(text):
        if len(diagnostics) >= limit:
            break

        expression = placeholder.expression.strip()
        if not is_missing(PathLookup(expression)(variables)):
            continue

        diagnostics.append(Diagnostic(
            message=f'Variable {expression!r} is not defined in context',
            severity=Severity.WARNING,
            range=Range(
                start=offset_to_position(text, placeholder.start),
                end=offset_to_position(text, placeholder.end),
            ),
            source=VARIABLES_SOURCE,
        ))

    return diagnostics


def diagnose(text: str, result: 'PipelineResult', variables: 'Environment', *,
             limit: int = MAX_PROBLEMS) -> list[Diagnostic]:
    """Collect every diagnostic of a document.

    Args:
        text: Source text of the document.
        result: Pipeline outcome for the same text.
        variables: Variable environment used by the pipeline.
        limit: Maximum number of diagnostics.

    Returns:
        The failure diagnostic first (if any), then placeholder warnings
        that do not duplicate it.
    """
    diagnostics: list[Diagnostic] = []

    if not result.ok:
        diagnostics.append(diagnose_failure(text, result))

    taken = {item.range for item in diagnostics}
    for warning in undefined_placeholders(text, variables, limit=limit):
        if len(diagnostics) >= limit:
            break
        if warning.range not in taken:
            diagnostics.append(warning)

    return diagnostics
