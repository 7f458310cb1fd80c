"""State/store layer.

This package is the single source of truth for the devices and
capability states the bridge knows about. Platform API polling and hub
commands both feed it; entity instances read from it at publish time.
"""
