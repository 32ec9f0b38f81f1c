"""Flow CLI module.

Provides command-line interface for flow definition files.
"""

from .main import cli, main

__all__ = ['cli', 'main']
