"""Allow ``python -m quadhash`` to run the CLI."""

from __future__ import annotations

from quadhash.cli.app import console_main

if __name__ == "__main__":
    console_main()
