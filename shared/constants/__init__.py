# shared/constants/__init__.py
from .model_fields import (
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
