"""Configuration loading for wordvec."""

from .config_loader import WordVecConfig

__all__ = ["WordVecConfig"]
