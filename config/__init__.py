"""Configuration management package for the TinyClaw auth broker"""

from .loader import ConfigLoader, get_config_loader, resolve_public_base_url

__all__ = [
    "ConfigLoader",
    "get_config_loader",
    "resolve_public_base_url",
]
