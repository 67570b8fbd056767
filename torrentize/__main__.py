"""Entry point for ``python -m torrentize``."""

from __future__ import annotations

from torrentize.cli.main import main

if __name__ == "__main__":
    main()
