"""Module entrypoint for running EduFlow as ``python -m eduflow``."""

from __future__ import annotations

from eduflow.cli import main


if __name__ == "__main__":
    main()
