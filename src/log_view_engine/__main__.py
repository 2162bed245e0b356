"""Module entrypoint.

Allows:
    python -m log_view_engine
"""

from __future__ import annotations

from log_view_engine.server.log_server import main

if __name__ == "__main__":
    main()
