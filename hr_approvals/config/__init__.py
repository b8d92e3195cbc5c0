"""
Configuration package for the HR approvals engine.

Contains environment settings and logging configuration.
"""

from hr_approvals.config.settings import Settings, get_settings, settings
from hr_approvals.config.logging import get_logger, setup_logging

__all__ = ['Settings', 'get_settings', 'settings', 'get_logger', 'setup_logging']
