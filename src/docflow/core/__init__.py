"""Core document processing.

This package implements the document pipeline and its components:
- path expression parsing and resolution;
- placeholder interpolation over document graphs;
- secure include resolution confined to a workspace root;
- the staged pipeline tying them together.

The primary public entry point is `DocumentPipeline`, which resolves
a raw YAML source into a `Success` or a stage-tagged `Failure`.
"""

from .expressions import PathLookup, parse_expression, resolve_expression, resolve_path
from .includes import (
    IncludeResolver,
    is_include_directive,
    load_include,
    process_includes,
    resolve_workspace_path,
    validate_static,
)
from .interpolation import (
    Placeholder,
    contains_placeholder,
    find_placeholders,
    interpolate,
    stringify,
)
from .parser import parse_source
from .pipeline import DocumentPipeline, Failure, PipelineResult, Success, validate_structure

__all__ = (
    'DocumentPipeline',
    'Failure',
    'IncludeResolver',
    'PathLookup',
    'PipelineResult',
    'Placeholder',
    'Success',
    'contains_placeholder',
    'find_placeholders',
    'interpolate',
    'is_include_directive',
    'load_include',
    'parse_expression',
    'parse_source',
    'process_includes',
    'resolve_expression',
    'resolve_path',
    'resolve_workspace_path',
    'stringify',
    'validate_static',
    'validate_structure',
)
