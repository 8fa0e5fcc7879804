"""Configuration module for BillStock."""

from billstock.config.logging import bind_owner, configure_logging, get_logger
from billstock.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings", "configure_logging", "get_logger", "bind_owner"]
