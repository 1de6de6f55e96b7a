"""
Domain rules for the traffic proxy that carry no I/O.
"""

from .resources import ALLOWED_RESOURCES, allowed_resources, is_allowed

__all__ = ["ALLOWED_RESOURCES", "allowed_resources", "is_allowed"]
