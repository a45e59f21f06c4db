"""Site adapters: selector profiles for supported directory sites."""

from .base import SiteProfile
from .findlaw import FINDLAW

__all__ = ["SiteProfile", "FINDLAW"]
