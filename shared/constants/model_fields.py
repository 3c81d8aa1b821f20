# shared/constants/model_fields.py

"""
CONSTANT field names and choice values shared by the students and billing apps.
NO DEPENDENCIES - safe to import from models, forms and services.
"""

# Class levels offered by the academy
CLASS_LEVELS = (
    ('o-level', 'O Level'),
    ('a-level', 'A Level'),
)


# Invoice status values
class StatusChoices:
    DRAFT = 'draft'
    SENT = 'sent'
    PAID = 'paid'
    OVERDUE = 'overdue'

    choices = (
        (DRAFT, 'Draft'),
        (SENT, 'Sent'),
        (PAID, 'Paid'),
        (OVERDUE, 'Overdue'),
    )


# Discount kinds carried by enrollments and invoice line items
class DiscountTypes:
    NONE = 'none'
    PERCENTAGE = 'percentage'
    FIXED = 'fixed'

    # 'amount' was used by the invoice wizard for fixed discounts
    ALIASES = {
        'amount': FIXED,
        '': NONE,
    }

    choices = (
        (NONE, 'No Discount'),
        (PERCENTAGE, 'Percentage'),
        (FIXED, 'Fixed Amount'),
    )

    @classmethod
    def normalize(cls, value):
        """Map a raw discount type (or alias) onto one of the canonical values."""
        if value is None:
            return cls.NONE
        value = str(value).strip().lower()
        value = cls.ALIASES.get(value, value)
        if value not in (cls.NONE, cls.PERCENTAGE, cls.FIXED):
            raise ValueError(f"Unknown discount type: {value}")
        return value


# Invoice line item kinds
class LineItemTypes:
    SUBJECT = 'subject'
    ADDON = 'addon'
    CUSTOM = 'custom'

    choices = (
        (SUBJECT, 'Subject'),
        (ADDON, 'Add-on'),
        (CUSTOM, 'Custom'),
    )
