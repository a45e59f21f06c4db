"""Validated run input schemas."""
from .run_input import DEFAULT_MAX_PAGES, DEFAULT_RESULTS_WANTED, RunInput

__all__ = ['RunInput', 'DEFAULT_RESULTS_WANTED', 'DEFAULT_MAX_PAGES']
