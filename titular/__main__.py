"""Module entry point.

Invokes the CLI main function when the package is executed
directly with ``python -m titular``.
"""

import sys

from titular.cli import main

if __name__ == '__main__':
    sys.exit(main())
