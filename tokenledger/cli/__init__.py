"""Command-line entry points (`tokenledger ...`, `python -m tokenledger.cli`)."""

from .main import app, main

__all__ = ["app", "main"]
