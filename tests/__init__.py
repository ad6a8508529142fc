"""Test suite for the docflow package.

This package contains unit and integration tests validating path
expressions, interpolation, include resolution, the staged pipeline,
workspace variables, diagnostics, rendering, and the CLI.
"""
