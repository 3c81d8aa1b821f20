# shared/__init__.py
"""
Shared package - central access to constants and money helpers.
Avoids importing app models to prevent circular dependencies.
"""

# Constants
from .constants import (
    CLASS_LEVELS,
    StatusChoices,
    DiscountTypes,
    LineItemTypes,
)

__all__ = [
    'CLASS_LEVELS',
    'StatusChoices',
    'DiscountTypes',
    'LineItemTypes',
]
