"""CLI entry-point for running the exporter from a source checkout."""
from __future__ import annotations

from freeswitch_exporter.cli import main

if __name__ == "__main__":
    main()
