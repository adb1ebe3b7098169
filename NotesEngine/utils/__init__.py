"""Notes Engine tool module.

Currently, it mainly exposes configuration reading logic."""

from .config import Settings, settings, print_config, reload_settings

__all__ = ["Settings", "settings", "print_config", "reload_settings"]
