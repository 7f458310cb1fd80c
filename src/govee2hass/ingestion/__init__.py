"""Ingestion layer.

This package contains the helpers that turn Platform API payloads into
normalized capability events and defensive value readers shared by the
entity families.
"""

__all__: list[str] = []
