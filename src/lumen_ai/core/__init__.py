"""Framework layer: settings, startup checks, shared types and exceptions."""

from __future__ import annotations

from lumen_ai.core.config import AppSettings
from lumen_ai.core.startup_checks import validate_settings

__all__ = ["AppSettings", "validate_settings"]
