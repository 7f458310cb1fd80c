"""Logging helpers.

govee2hass logs through the standard library. Configuring handlers and
formats is left to the application; this module only registers the extra
``TRACE`` level used for very chatty, usually uninteresting events.
"""

from __future__ import annotations

import logging

TRACE = 5

if logging.getLevelName(TRACE) != "TRACE":
    logging.addLevelName(TRACE, "TRACE")
