"""Allow ``python -m bencanon``."""

from __future__ import annotations

from bencanon.cli.main import main

if __name__ == "__main__":
    main()
