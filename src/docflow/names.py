"""Document syntax primitives.

This module defines the fixed names and compiled patterns that make up
the document syntax: placeholders, path expressions, include directives
and the variables file naming convention.

The rules defined here form part of the public document contract and are
relied upon by the pipeline, diagnostics, and editor tooling.
"""

from re import compile as regexp
from typing import Final

#: Marker opening a placeholder inside a string scalar.
PLACEHOLDER_MARKER: Final = '${'

#: Compiled pattern for placeholders.
#: Matches are non-greedy and never span lines: `${user.name}`, `${items[0]}`.
PLACEHOLDER_PATTERN = regexp(r'\$\{(?P<expression>.*?)\}')

#: Compiled pattern for path expression delimiters.
#: Runs of dots and brackets split a path into segments.
SEGMENT_DELIMITERS = regexp(r'[.\[\]]+')

#: The only key of an include directive mapping.
INCLUDE_KEY: Final = 'include'

#: Default suffix of the workspace variables file.
VARIABLES_SUFFIX: Final = '.vars.yaml'

#: Default file extensions treated as includable markup.
MARKUP_EXTENSIONS: Final = ('.yaml', '.yml')

#: Top-level key holding workflow steps.
STEPS_KEY: Final = 'steps'
