"""
Helldivers 2 Galactic War Status Backend

Polls the community Helldivers 2 API on its seven status endpoints,
isolates per-endpoint failures, normalizes payloads into a stable schema
and produces one renderable snapshot per polling cycle.
"""

__version__ = "1.0.0"
__author__ = "Galactic War Status Team"
