"""cfnpreview command-line interface.

Exposes:
    cli -- Click command entry point (registered as ``cfnpreview`` script).
"""

from cfnpreview.cli.main import cli

__all__ = ["cli"]
