"""Core exception hierarchy.

This module defines the error and warning types raised by the document
pipeline. Each error class is bound to the pipeline stage that produces
it, so callers can report failures uniformly whatever component raised.
"""

from enum import StrEnum
from os import linesep
from typing import TYPE_CHECKING, Any, ClassVar, TypedDict

from yaml.error import MarkedYAMLError

from docflow.render import render
from docflow.values import MAPPINGS, SEQUENCES

if TYPE_CHECKING:
    from typing import Self

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails, ValidationError

SNIPPET_ELLIPSIS = f' ...{linesep}'

FORMAT_FILENAME = '<unicode string>'
FORMAT_INDENT = 4


class Stage(StrEnum):
    """Ordered stages of the document pipeline."""

    PARSING = 'parsing'
    VARIABLE_RESOLUTION = 'variable-resolution'
    INCLUDE_PROCESSING = 'include-processing'
    STRUCTURAL_VALIDATION = 'structural-validation'


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Name of the source file where the error occurred.
    filename: str | None

    #: Line number in the source file (zero-based).
    line_num: int | None
    #: Column number in the source file (zero-based).
    column_num: int | None

    #: Underlying exception that triggered formatting.
    error: Exception | None

    #: Document element associated with the error.
    element: Any


class ErrorFormatter:
    """Utility class for formatting document errors.

    This formatter is responsible for producing human-readable
    error messages with optional source location and YAML-based
    contextual snippets.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        message += linesep
        message += cls.get_location_string(context, indent=FORMAT_INDENT)
        message += cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)

        return message.rstrip()

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format source location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string including filename, line
            and column when available.
        """
        indent = cls._ensure_indent(indent)

        filename = context.get('filename')
        if not filename:
            filename = FORMAT_FILENAME

        message = f'{indent}in "{filename}"'
        if (line_num := context.get('line_num')) is not None:
            message += f', line {line_num + 1}'
            if (column_num := context.get('column_num')) is not None:
                message += f', column {column_num + 1}'
        message += linesep

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a formatted snippet illustrating the error context.

        Args:
            context: Error context containing a YAML error or an element.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no snippet data is available.
        """
        indent = cls._ensure_indent(indent)

        error = context.get('error')
        if isinstance(error, MarkedYAMLError) and error.problem_mark is not None:
            snippet = error.problem_mark.get_snippet(indent=0) or ''
            return cls._make_indent(snippet, indent)

        if (element := context.get('element')) is not None:
            snippet = f'{indent}{SNIPPET_ELLIPSIS}'
            snippet += cls._make_indent(render(element), indent)
            return snippet

        return ''

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input to a string."""
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class WorkspaceWarning(UserWarning):
    """Warning emitted for non-fatal workspace issues.

    Used when the variables file cannot be loaded. The variable
    environment is reset to empty and processing continues.
    """


class DocumentError(Exception, ErrorFormatter):
    """Base exception for all docflow errors.

    Subclasses bind themselves to the pipeline stage that raises them.
    The pipeline still tags failures with the stage that was running,
    so `stage` here is informative for direct callers of the components.
    """

    stage: ClassVar[Stage]

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional location values.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String representation with location and snippet."""
        return self.format(self.message, self.context)

    @property
    def line_num(self) -> int | None:
        """Zero-based source line of the error, if known."""
        return (self.context or {}).get('line_num')

    @property
    def column_num(self) -> int | None:
        """Zero-based source column of the error, if known."""
        return (self.context or {}).get('column_num')


class DocumentSyntaxError(DocumentError):
    """Error raised when the source text is not valid YAML."""

    stage = Stage.PARSING

    @classmethod
    def from_yaml_error(cls, error: MarkedYAMLError,
                        filename: str | None = None) -> 'Self':
        """Create a syntax error from a PyYAML parsing failure.

        Args:
            error: Exception raised by the YAML parser.
            filename: Optional name of the parsed source.

        Returns:
            DocumentSyntaxError with the problem position attached.
        """
        error_context = ErrorContext(filename=filename, error=error)

        if (mark := error.problem_mark or error.context_mark) is not None:
            error_context['line_num'] = mark.line
            error_context['column_num'] = mark.column

        message = 'Invalid YAML'
        if error.problem:
            message += f': {error.problem}'

        return cls(message, context=error_context)


class UnresolvedVariableError(DocumentError):
    """Error raised when a placeholder refers to an undefined variable."""

    stage = Stage.VARIABLE_RESOLUTION

    def __init__(self, expression: str) -> None:
        """Initialize an unresolved variable error.

        Args:
            expression: Placeholder expression as written in the source.
        """
        self.expression = expression

        super().__init__(f'Variable {expression!r} is not defined in context')


class IncludeError(DocumentError):
    """Base error for include processing failures."""

    stage = Stage.INCLUDE_PROCESSING


class SecurityViolationError(IncludeError):
    """Error raised when an include path escapes the workspace root."""

    def __init__(self, requested: str, root: str) -> None:
        """Initialize a security violation error.

        Args:
            requested: Include path as written in the document.
            root: Workspace root the path must stay in.
        """
        self.requested = requested
        self.root = root

        super().__init__(
            f'Security violation: cannot include {requested!r} '
            f'outside the workspace {root!r}',
        )


class IncludeNotFoundError(IncludeError):
    """Error raised when an included file does not exist."""

    def __init__(self, path: str) -> None:
        """Initialize an include not found error.

        Args:
            path: Resolved path of the missing file.
        """
        self.path = path

        super().__init__(f'Include file not found: {path}')


class IncludeReadError(IncludeError):
    """Error raised when an included file exists but cannot be read."""


class PlaceholderInIncludedFileError(IncludeError):
    """Error raised when included content contains a placeholder."""

    def __init__(self, value: str, *, filename: str | None = None) -> None:
        """Initialize a placeholder in included file error.

        Args:
            value: String scalar carrying the placeholder marker.
            filename: Optional included file name.
        """
        self.value = value

        super().__init__(
            f'Variable placeholder found in included file: {value!r}',
            context=ErrorContext(filename=filename) if filename else None,
        )


class NestedIncludeFoundError(IncludeError):
    """Error raised when included content contains an include directive."""

    def __init__(self, target: str, *, filename: str | None = None) -> None:
        """Initialize a nested include error.

        Args:
            target: Path named by the nested include directive.
            filename: Optional included file name.
        """
        self.target = target

        super().__init__(
            f'Include directive found in included file: {target!r}',
            context=ErrorContext(filename=filename) if filename else None,
        )


class StructuralMismatchError(DocumentError):
    """Error raised when a resolved document does not match the expected shape."""

    stage = Stage.STRUCTURAL_VALIDATION

    @classmethod
    def from_pydantic_error(cls, error: 'ValidationError', *,
                            data: Any = None,  # noqa: ANN401
                            filename: str | None = None) -> 'Self':
        """Create a structural error from a Pydantic validation failure.

        The message names the first failing location, and the snippet
        shows the minimal part of the document responsible for it.

        Args:
            error: ValidationError raised by Pydantic.
            data: Validated document data.
            filename: Name of the source file.

        Returns:
            StructuralMismatchError representing the validation failure.
        """
        error_context = ErrorContext(filename=filename, error=error)

        for item in error.errors(include_url=False, include_input=False):
            message = cls._describe(item)
            if located := cls._locate_element(data, item):
                return cls(message, context=ErrorContext({**error_context, 'element': located}))
            return cls(message, context=error_context)

        return cls('Validation error', context=error_context)  # pragma: no cover

    @staticmethod
    def _describe(error: 'ErrorDetails') -> str:
        """Build a one-line message for a Pydantic error item."""
        location = '.'.join(str(part) for part in error['loc'])
        message = (error.get('msg') or 'Invalid value').splitlines()[0].strip()

        if location:
            return f'Invalid document structure at {location!r}: {message}'

        return f'Invalid document structure: {message}'

    @staticmethod
    def _locate_element(value: Any, error: 'ErrorDetails') -> Any:  # noqa: ANN401
        """Locate the failing element in validated data.

        Walks the Pydantic error location path and returns the innermost
        `{key: value}` fragment that can be reached, or `None`.
        """
        last_key: int | str | None = None
        last_item = value

        for key in error['loc']:
            if isinstance(last_item, SEQUENCES) and isinstance(key, int) \
                    and 0 <= key < len(last_item):
                last_item, last_key = last_item[key], key
            elif isinstance(last_item, MAPPINGS) and key in last_item:
                last_item, last_key = last_item[key], key
            else:
                break

        if last_key is None:
            return None

        return {last_key: last_item}
