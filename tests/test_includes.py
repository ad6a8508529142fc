"""Tests for include directives and workspace confinement."""

from typing import TYPE_CHECKING, Any

import pytest

from docflow.core import (
    IncludeResolver,
    is_include_directive,
    load_include,
    process_includes,
    resolve_workspace_path,
    validate_static,
)
from docflow.errors import (
    DocumentSyntaxError,
    IncludeError,
    IncludeNotFoundError,
    IncludeReadError,
    NestedIncludeFoundError,
    PlaceholderInIncludedFileError,
    SecurityViolationError,
    Stage,
)
from docflow.values import NodeKind, classify

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem
    from pytest_mock import MockerFixture


@pytest.mark.parametrize('node, expected', (
    pytest.param({'include': 'file.yaml'}, True, id='directive'),
    pytest.param({'include': 'file.yaml', 'other': 1}, False, id='extra keys'),
    pytest.param({'include': 123}, False, id='non-string path'),
    pytest.param({'include': None}, False, id='null path'),
    pytest.param({'Include': 'file.yaml'}, False, id='key is case sensitive'),
    pytest.param({}, False, id='empty mapping'),
    pytest.param(['include', 'file.yaml'], False, id='sequence'),
    pytest.param('include: file.yaml', False, id='string'),
    pytest.param(123, False, id='number'),
    pytest.param(None, False, id='null'),
))
def test_is_include_directive(node: Any, expected: bool) -> None:
    """Detect only single-key include mappings."""
    assert is_include_directive(node) is expected


@pytest.mark.parametrize('node, expected', (
    pytest.param({'include': 'a.yaml'}, NodeKind.INCLUDE, id='include'),
    pytest.param({'include': 'a.yaml', 'b': 1}, NodeKind.MAPPING, id='mapping'),
    pytest.param([1], NodeKind.SEQUENCE, id='sequence'),
    pytest.param((1,), NodeKind.SEQUENCE, id='tuple'),
    pytest.param('text', NodeKind.SCALAR, id='string'),
    pytest.param(None, NodeKind.SCALAR, id='null'),
))
def test_classify(node: Any, expected: NodeKind) -> None:
    """Classify nodes with a single discriminator."""
    assert classify(node) is expected


@pytest.mark.parametrize('node', (
    pytest.param({'name': 'John', 'age': 30}, id='plain mapping'),
    pytest.param('Hello world', id='plain string'),
    pytest.param(['a', {'b': ['c']}], id='nested sequence'),
    pytest.param({'include': 'a', 'other': 'b'}, id='mapping with include key'),
    pytest.param(None, id='null'),
    pytest.param(42, id='number'),
    pytest.param('costs $5 {each}', id='dollar without brace'),
))
def test_validate_static_content(node: Any) -> None:
    """Accept fully static content."""
    validate_static(node)


@pytest.mark.parametrize('node', (
    pytest.param('Hello ${name}', id='string'),
    pytest.param({'user': {'greeting': 'Hello ${name}'}}, id='nested mapping'),
    pytest.param(['plain', 'text', 'with ${variable}'], id='sequence'),
    pytest.param({'${key}': 'value'}, id='mapping key'),
    pytest.param('unclosed ${marker', id='marker only'),
))
def test_validate_static_placeholder(node: Any) -> None:
    """Reject placeholders in included content."""
    with pytest.raises(PlaceholderInIncludedFileError, match=r'^Variable placeholder found'):
        validate_static(node)


@pytest.mark.parametrize('node', (
    pytest.param({'include': 'file.yaml'}, id='root'),
    pytest.param({'config': {'include': 'file.yaml'}}, id='nested mapping'),
    pytest.param(['a', {'include': 'file.yaml'}], id='sequence'),
))
def test_validate_static_nested_include(node: Any) -> None:
    """Reject include directives in included content."""
    with pytest.raises(NestedIncludeFoundError, match=r"'file.yaml'"):
        validate_static(node)


@pytest.mark.parametrize('requested', (
    pytest.param('../../etc/passwd', id='two levels up'),
    pytest.param('../../../../../../etc/passwd', id='many levels up'),
    pytest.param('sub/../../etc/passwd', id='through subdirectory'),
    pytest.param('/etc/passwd', id='absolute path'),
    pytest.param('..', id='parent directory'),
    pytest.param('../workspace-evil/x.yaml', id='sibling with common prefix'),
))
def test_resolve_workspace_path_violation(workspace: 'Path', requested: str) -> None:
    """Reject paths escaping the workspace root."""
    with pytest.raises(SecurityViolationError, match=r'^Security violation') as error:
        resolve_workspace_path(requested, workspace)

    assert error.value.requested == requested
    assert error.value.stage is Stage.INCLUDE_PROCESSING


@pytest.mark.parametrize('requested, expected', (
    pytest.param('ok.yaml', '/workspace/ok.yaml', id='file'),
    pytest.param('./sub/../ok.yaml', '/workspace/ok.yaml', id='normalized'),
    pytest.param('.', '/workspace', id='root itself'),
    pytest.param('/workspace/sub/a.yaml', '/workspace/sub/a.yaml', id='absolute inside'),
))
def test_resolve_workspace_path(workspace: 'Path', requested: str, expected: str) -> None:
    """Resolve paths staying inside the workspace root."""
    assert resolve_workspace_path(requested, workspace).as_posix() == expected


def test_resolve_workspace_path_symlink(fs: 'FakeFilesystem', workspace: 'Path') -> None:
    """Check the target of symlinks, not their location."""
    fs.create_symlink(workspace / 'escape', '/etc')

    with pytest.raises(SecurityViolationError):
        resolve_workspace_path('escape/passwd', workspace)


def test_load_include(workspace: 'Path',
                     write_file: 'Callable[[str, str], Path]') -> None:
    """Load a static YAML file."""
    write_file('test.yaml', 'name: Test\nvalue: 123\n')

    assert load_include('test.yaml', workspace) == {'name': 'Test', 'value': 123}


def test_load_include_yml(workspace: 'Path',
                         write_file: 'Callable[[str, str], Path]') -> None:
    """Load files with the short markup extension in any case."""
    write_file('sub/test.YML', '- a\n- b\n')

    assert load_include('sub/test.YML', workspace) == ['a', 'b']


def test_load_include_not_found(workspace: 'Path') -> None:
    """Fail on missing files."""
    with pytest.raises(IncludeNotFoundError, match=r'^Include file not found'):
        load_include('nonexistent.yaml', workspace)


def test_load_include_directory(fs: 'FakeFilesystem', workspace: 'Path') -> None:
    """Treat directories as missing files."""
    fs.create_dir(workspace / 'folder.yaml')

    with pytest.raises(IncludeNotFoundError):
        load_include('folder.yaml', workspace)


def test_load_include_traversal(workspace: 'Path') -> None:
    """Check confinement before existence."""
    with pytest.raises(SecurityViolationError):
        load_include('../../../etc/passwd', workspace)

    with pytest.raises(SecurityViolationError):
        load_include('../missing.yaml', workspace)


def test_load_include_placeholder(workspace: 'Path',
                                  write_file: 'Callable[[str, str], Path]') -> None:
    """Fail on included files with placeholders."""
    write_file('vars.yaml', 'greeting: "Hi ${name}"\n')

    with pytest.raises(PlaceholderInIncludedFileError, match=r'Hi \$\{name\}') as error:
        load_include('vars.yaml', workspace)

    assert 'vars.yaml' in str(error.value)


def test_load_include_nested(workspace: 'Path',
                             write_file: 'Callable[[str, str], Path]') -> None:
    """Fail on included files with include directives."""
    write_file('nested.yaml', 'include: other.yaml\n')
    write_file('other.yaml', 'a: 1\n')

    with pytest.raises(NestedIncludeFoundError, match=r'^Include directive found'):
        load_include('nested.yaml', workspace)


def test_load_include_non_markup(workspace: 'Path',
                                 write_file: 'Callable[[str, str], Path]') -> None:
    """Resolve non-markup files to null."""
    write_file('test.txt', 'plain text with ${marker}')

    assert load_include('test.txt', workspace) is None


def test_load_include_custom_extensions(workspace: 'Path',
                                        write_file: 'Callable[[str, str], Path]') -> None:
    """Parse only the configured extensions."""
    write_file('prompt.flow', 'a: 1\n')
    write_file('prompt.yaml', 'a: 2\n')

    resolver = IncludeResolver(workspace, extensions=('.FLOW',))

    assert resolver.load('prompt.flow') == {'a': 1}
    assert resolver.load('prompt.yaml') is None


def test_load_include_syntax_error(workspace: 'Path',
                                   write_file: 'Callable[[str, str], Path]') -> None:
    """Report syntax errors with the included file location."""
    write_file('broken.yaml', 'a: [1, 2\n')

    with pytest.raises(DocumentSyntaxError, match=r'^Invalid YAML') as error:
        load_include('broken.yaml', workspace)

    assert error.value.context['filename'] == '/workspace/broken.yaml'


def test_load_include_read_error(workspace: 'Path', mocker: 'MockerFixture',
                                 write_file: 'Callable[[str, str], Path]') -> None:
    """Wrap I/O failures into include errors."""
    path = resolve_workspace_path(write_file('locked.yaml', 'a: 1\n').name, workspace)
    mocker.patch.object(type(path), 'read_text', side_effect=PermissionError('denied'))

    with pytest.raises(IncludeReadError, match=r'denied') as error:
        load_include('locked.yaml', workspace)

    assert isinstance(error.value, IncludeError)


@pytest.mark.parametrize('node', (
    pytest.param('string', id='string'),
    pytest.param(123, id='number'),
    pytest.param(True, id='boolean'),
    pytest.param(None, id='null'),
    pytest.param(['a', 'b', 'c'], id='sequence'),
    pytest.param({'name': 'Test', 'value': 42}, id='mapping'),
))
def test_process_includes_passthrough(workspace: 'Path', node: Any) -> None:
    """Leave graphs without directives unchanged."""
    assert process_includes(node, workspace) == node


def test_process_includes(workspace: 'Path',
                          write_file: 'Callable[[str, str], Path]') -> None:
    """Replace a root directive with the file content."""
    write_file('ok.yaml', 'a: 1\n')

    assert process_includes({'include': 'ok.yaml'}, workspace) == {'a': 1}


def test_process_includes_nested(workspace: 'Path',
                                 write_file: 'Callable[[str, str], Path]') -> None:
    """Replace directives inside mappings and sequences."""
    write_file('nested.yaml', 'nested: true\n')
    write_file('item.yaml', 'type: included\n')
    write_file('notes.txt', 'ignored')

    node = {
        'config': {'include': 'nested.yaml'},
        'items': ['plain', {'include': 'item.yaml'}, {'include': 'notes.txt'}],
        'other': {'include': 'item.yaml', 'keep': True},
    }

    assert process_includes(node, workspace) == {
        'config': {'nested': True},
        'items': ['plain', {'type': 'included'}, None],
        'other': {'include': 'item.yaml', 'keep': True},
    }


def test_process_includes_does_not_mutate(workspace: 'Path',
                                          write_file: 'Callable[[str, str], Path]') -> None:
    """Keep the input graph intact."""
    write_file('ok.yaml', 'a: 1\n')
    node = {'x': [{'include': 'ok.yaml'}]}

    process_includes(node, workspace)

    assert node == {'x': [{'include': 'ok.yaml'}]}


def test_process_includes_violation(workspace: 'Path') -> None:
    """Fail without partial results on traversal."""
    node = {'steps': [{'include': '../../etc/passwd'}]}

    with pytest.raises(SecurityViolationError):
        process_includes(node, workspace)
