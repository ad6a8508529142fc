"""YAML workflow documents with variables and secure includes.

The `docflow` package resolves YAML workflow sources into static
documents ready for execution.

Key features:
- `${path.to[0].value}` placeholders resolved from a workspace
  variables file (`*.vars.yaml`);
- `include: file.yaml` directives inlining static YAML modules
  without escaping the workspace root;
- a staged pipeline reporting which stage failed;
- editor diagnostics, YAML rendering and a small CLI.
"""
