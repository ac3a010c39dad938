"""Entry point wrapper for ``python -m phono_convert``.

Execution is forwarded to :func:`phono_convert.cli.main` so the module and the
installed ``phono-convert`` console script behave identically.
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
