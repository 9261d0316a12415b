"""timespine CLI: ``timespine`` console script."""

from timespine.cli.app import app

__all__ = ["app"]
