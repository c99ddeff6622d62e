"""Module entrypoint.

Allows:
    python -m access_log_parser
"""

from __future__ import annotations

from access_log_parser.cli import main

if __name__ == "__main__":
    main()
