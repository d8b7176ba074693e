"""docdigest -- application entry point.

Equivalent to the ``docdigest`` console script, for running from a checkout:

    uv run python main.py run --root ./inbox

See ``docdigest.cli`` for the startup sequence and options.
"""

import sys

from docdigest.cli import main

if __name__ == "__main__":
    sys.exit(main())
