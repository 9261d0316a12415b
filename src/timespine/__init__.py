"""
Timespine - schema-resilient query routing over time-tracking report databases.

- timespine.core: manifest, validation, capabilities, retry, temporal splitting
- timespine.repositories: async query repositories (primary + fallback paths)
- timespine.services: wiring and startup validation
- timespine.cli: operator CLI
"""

__version__ = "0.3.0"
