"""wsrouter CLI — Typer-based developer tooling.

Provides the ``wsrouter`` command for listening on identifiers, sending a
single envelope, and inspecting configuration.

All output uses Rich for formatted terminal display.
"""
