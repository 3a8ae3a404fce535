"""Configuration file generation for the setup script."""

from configgen.config_file import ConfigFile
from configgen.generator import config_to_python, sanitize

__all__ = ["ConfigFile", "config_to_python", "sanitize"]
