"""Entry point for running gitpeek as a module.

This module allows gitpeek to be run as a Python module using the -m flag:
    python -m gitpeek
"""

from . import cli

if __name__ == "__main__":
    cli._main()
