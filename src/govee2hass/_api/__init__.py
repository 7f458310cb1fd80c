"""Govee Platform API endpoint modules."""
