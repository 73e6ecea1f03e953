"""calspine CLI -- build calendars and query them from the terminal."""

from calspine.cli.app import app

__all__ = ["app"]
