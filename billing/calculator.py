# billing/calculator.py
"""
Invoice line-item and discount calculator.

Turns the current selection of subjects and add-ons into priced line items
and subtotal / discount / total figures. Everything here is a pure function
over immutable values: no ORM access, no settings, no logging. Views and
services rebuild an InvoiceTotals from scratch on every change of the
selection and once more when the invoice is submitted.
"""
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Tuple

from shared.constants import DiscountTypes, LineItemTypes
from shared.utils.money import ZERO, format_money, quantize_money, to_decimal

HUNDRED = Decimal('100')


# ============ DISCOUNTS ============

@dataclass(frozen=True)
class DiscountSpec:
    """
    A discount attached to one scope (a single subject or the whole invoice).

    ``discount_type`` is one of DiscountTypes; a 'none' discount always
    carries a value of zero. The value is rounded to cents on construction
    so a saved line recomputes to its own discount amount. Values are not
    range-checked: a 150% discount is applied as-is and the line price is
    floored at zero.
    """
    discount_type: str = DiscountTypes.NONE
    value: Decimal = ZERO

    def __post_init__(self):
        discount_type = DiscountTypes.normalize(self.discount_type)
        value = quantize_money(to_decimal(self.value, default=ZERO))
        if discount_type == DiscountTypes.NONE:
            value = ZERO
        object.__setattr__(self, 'discount_type', discount_type)
        object.__setattr__(self, 'value', value)

    @classmethod
    def none(cls) -> 'DiscountSpec':
        return cls()

    @classmethod
    def percentage(cls, value) -> 'DiscountSpec':
        return cls(DiscountTypes.PERCENTAGE, value)

    @classmethod
    def fixed(cls, value) -> 'DiscountSpec':
        return cls(DiscountTypes.FIXED, value)

    @classmethod
    def from_fields(cls, discount_type, value=None) -> 'DiscountSpec':
        """Build from the loose (type, value) pair forms and enrollments store."""
        return cls(discount_type, value)

    @property
    def is_none(self) -> bool:
        return self.discount_type == DiscountTypes.NONE

    def amount_for(self, base: Decimal) -> Decimal:
        """Discount amount taken off ``base``, rounded to cents."""
        if self.discount_type == DiscountTypes.PERCENTAGE:
            return quantize_money(base * self.value / HUNDRED)
        if self.discount_type == DiscountTypes.FIXED:
            return quantize_money(self.value)
        return ZERO


# ============ SELECTION STATE ============

@dataclass(frozen=True)
class SubjectSelection:
    """One catalog subject as shown in the invoice/enrollment form."""
    id: Any
    name: str
    unit_price: Decimal
    selected: bool = False
    discount: DiscountSpec = field(default_factory=DiscountSpec)
    reason: str = ''
    currently_enrolled: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'unit_price', to_decimal(self.unit_price))
        if self.discount is None:
            object.__setattr__(self, 'discount', DiscountSpec())

    def with_selected(self, selected: bool = True) -> 'SubjectSelection':
        return replace(self, selected=selected)

    def with_discount(self, discount: DiscountSpec, reason: Optional[str] = None) -> 'SubjectSelection':
        return replace(self, discount=discount, reason=self.reason if reason is None else reason)

    def with_discount_type(self, discount_type: str) -> 'SubjectSelection':
        """
        Switch the discount kind, keeping the entered value.
        Switching to 'none' resets the value to zero.
        """
        return replace(self, discount=DiscountSpec(discount_type, self.discount.value))


@dataclass(frozen=True)
class AddOnSelection:
    """One catalog add-on. Add-ons are never discounted individually."""
    id: Any
    name: str
    unit_price: Decimal
    selected: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'unit_price', to_decimal(self.unit_price))

    def with_selected(self, selected: bool = True) -> 'AddOnSelection':
        return replace(self, selected=selected)


# ============ RESULTS ============

@dataclass(frozen=True)
class LineItem:
    item_type: str
    item_id: Any
    name: str
    unit_price: Decimal
    discount_type: str
    discount_value: Decimal
    discount_amount: Decimal
    final_price: Decimal
    reason: str = ''


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    total_discount: Decimal
    total: Decimal
    line_items: Tuple[LineItem, ...] = ()
    invoice_discount: DiscountSpec = field(default_factory=DiscountSpec)
    invoice_discount_amount: Decimal = ZERO

    @property
    def line_discount(self) -> Decimal:
        return self.total_discount - self.invoice_discount_amount

    @property
    def subject_items(self) -> Tuple[LineItem, ...]:
        return tuple(i for i in self.line_items if i.item_type == LineItemTypes.SUBJECT)

    @property
    def add_on_items(self) -> Tuple[LineItem, ...]:
        return tuple(i for i in self.line_items if i.item_type == LineItemTypes.ADDON)

    @property
    def is_empty(self) -> bool:
        return not self.line_items


# ============ PRICING ============

def price_subject(subject: SubjectSelection) -> LineItem:
    unit_price = quantize_money(subject.unit_price)
    discount_amount = subject.discount.amount_for(unit_price)
    return LineItem(
        item_type=LineItemTypes.SUBJECT,
        item_id=subject.id,
        name=subject.name,
        unit_price=unit_price,
        discount_type=subject.discount.discount_type,
        discount_value=subject.discount.value,
        discount_amount=discount_amount,
        final_price=max(ZERO, unit_price - discount_amount),
        reason=subject.reason or '',
    )


def price_add_on(add_on: AddOnSelection) -> LineItem:
    unit_price = quantize_money(add_on.unit_price)
    return LineItem(
        item_type=LineItemTypes.ADDON,
        item_id=add_on.id,
        name=add_on.name,
        unit_price=unit_price,
        discount_type=DiscountTypes.NONE,
        discount_value=ZERO,
        discount_amount=ZERO,
        final_price=unit_price,
    )


def compute_invoice_totals(
    subjects: Iterable[SubjectSelection],
    add_ons: Iterable[AddOnSelection] = (),
    invoice_discount: Optional[DiscountSpec] = None,
) -> InvoiceTotals:
    """
    Price the selected items.

    Line items come out subjects first, then add-ons, each in the order
    given. Each line is floored at zero on its own, so an over-discounted
    subject can never eat into another line. An invoice-scope discount is
    taken once off the sum of the line prices and the total is floored at
    zero as well.
    """
    line_items = [price_subject(s) for s in subjects if s.selected]
    line_items += [price_add_on(a) for a in add_ons if a.selected]

    subtotal = sum((item.unit_price for item in line_items), ZERO)
    line_discount = sum((item.discount_amount for item in line_items), ZERO)
    lines_total = sum((item.final_price for item in line_items), ZERO)

    invoice_discount = invoice_discount or DiscountSpec()
    invoice_discount_amount = invoice_discount.amount_for(lines_total)

    return InvoiceTotals(
        subtotal=subtotal,
        total_discount=line_discount + invoice_discount_amount,
        total=max(ZERO, lines_total - invoice_discount_amount),
        line_items=tuple(line_items),
        invoice_discount=invoice_discount,
        invoice_discount_amount=invoice_discount_amount,
    )


# ============ SERIALIZATION ============

def line_item_payload(item: LineItem) -> Dict[str, Any]:
    return {
        'type': item.item_type,
        'subject_id': item.item_id if item.item_type == LineItemTypes.SUBJECT else None,
        'add_on_id': item.item_id if item.item_type == LineItemTypes.ADDON else None,
        'description': item.name,
        'quantity': 1,
        'unit_price': format_money(item.unit_price),
        'discount_type': item.discount_type,
        'discount_value': format_money(item.discount_value),
        'discount_amount': format_money(item.discount_amount),
        'discount_reason': item.reason,
        'total': format_money(item.final_price),
    }


def summarize_totals(totals: InvoiceTotals) -> Dict[str, Any]:
    """Amounts and items in wire format, without invoice header fields."""
    return {
        'items': [line_item_payload(item) for item in totals.line_items],
        'subtotal': format_money(totals.subtotal),
        'discount_amount': format_money(totals.total_discount),
        'total': format_money(totals.total),
    }


def to_invoice_payload(totals: InvoiceTotals, student_id, due_date, notes: str = '') -> Dict[str, Any]:
    """Request body for the invoice create/update endpoints."""
    if isinstance(due_date, date):
        due_date = due_date.isoformat()
    payload = {
        'student_id': student_id,
        'due_date': due_date,
        'notes': notes or '',
    }
    payload.update(summarize_totals(totals))
    return payload
