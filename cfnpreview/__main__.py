"""Entry point for `python -m cfnpreview`.

Usage:
    python -m cfnpreview -s my-stack template.yml
"""

from __future__ import annotations

from cfnpreview.cli import cli

cli(prog_name="cfnpreview")
