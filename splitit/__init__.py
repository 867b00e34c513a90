"""Presentation layer for the splitIt expense-splitting application."""

from __future__ import annotations

from typing import Any

from .config import Settings, load_settings, resolve_config_path


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the splitIt web application."""

    from .web import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "Settings",
    "load_settings",
    "resolve_config_path",
    "create_app",
]
