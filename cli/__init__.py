"""CLI package for the TinyClaw auth broker

Runs the gateway server and manages provider credentials in the
settings document from the terminal.
"""

from cli.main import main

__all__ = [
    "main",
]
