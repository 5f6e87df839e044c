"""Configuration: environment-driven settings and logging setup."""

from unilink.config.settings import Config, get_config

__all__ = ["Config", "get_config"]
