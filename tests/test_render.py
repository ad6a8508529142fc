"""Tests for rendering resolved documents."""

from docflow.core import parse_source
from docflow.render import render


def test_render_round_trip() -> None:
    """Parse rendered text back to an equal document."""
    document = {
        'title': 'Report',
        'steps': [
            {'name': 'A', 'count': 3, 'ratio': 0.5},
            {'name': 'B', 'flags': [True, None]},
        ],
        'notes': 'first line\nsecond line',
    }

    assert parse_source(render(document)) == document


def test_render_layout() -> None:
    """Keep key order and indent sequences under their keys."""
    document = {'zeta': 1, 'alpha': {'items': ['x', 'y']}}

    assert render(document) == (
        'zeta: 1\n'
        'alpha:\n'
        '  items:\n'
        '    - x\n'
        '    - y\n'
    )


def test_render_unicode() -> None:
    """Write non-ASCII text as is."""
    assert render({'greeting': 'Привет'}) == 'greeting: Привет\n'
