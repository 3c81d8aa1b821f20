# shared/utils/__init__.py
from .money import to_decimal, quantize_money, format_money, format_pkr

__all__ = [
    'to_decimal',
    'quantize_money',
    'format_money',
    'format_pkr',
]
