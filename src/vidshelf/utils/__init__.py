"""Utility modules for vidshelf."""

from vidshelf.utils.config import resolve_setting, set_setting

__all__ = ["resolve_setting", "set_setting"]
