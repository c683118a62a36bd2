"""Core utilities and configuration for CarLeads"""
from core.config import settings
from core.exceptions import CarLeadsError, ValidationError
from core.logging import get_logger

__all__ = [
    "settings",
    "get_logger",
    "CarLeadsError",
    "ValidationError",
]
