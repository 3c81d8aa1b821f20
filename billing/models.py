# billing/models.py
import logging
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from shared.constants import DiscountTypes, LineItemTypes, StatusChoices

logger = logging.getLogger(__name__)


class Invoice(models.Model):
    """Invoice raised for a student's subjects and add-ons."""
    invoice_number = models.CharField(max_length=50, unique=True, db_index=True)
    student = models.ForeignKey('students.Student', on_delete=models.CASCADE, related_name='invoices')

    issue_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField()

    # Amount breakdown
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    status = models.CharField(max_length=20, choices=StatusChoices.choices, default=StatusChoices.DRAFT)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'billing_invoice'
        indexes = [
            models.Index(fields=['student', 'status']),
            models.Index(fields=['due_date', 'status']),
        ]
        verbose_name = 'Invoice'
        verbose_name_plural = 'Invoices'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"Invoice {self.invoice_number} - {self.student.full_name} - Rs. {self.total:,.2f}"

    def clean(self):
        """Validate invoice amounts and dates."""
        for field_name in ('subtotal', 'discount_amount', 'total', 'amount_paid'):
            value = getattr(self, field_name)
            if value is not None and value < 0:
                raise ValidationError({field_name: 'Amount cannot be negative.'})

        # Every line is floored at zero, so the total can never exceed the subtotal
        if self.total is not None and self.subtotal is not None and self.total > self.subtotal:
            raise ValidationError({'total': 'Total cannot exceed subtotal.'})

        if self.due_date and self.issue_date and self.due_date < self.issue_date:
            raise ValidationError({'due_date': 'Due date cannot be before the issue date.'})

    def save(self, *args, **kwargs):
        """Save invoice with auto-generated number and validation."""
        if not self.invoice_number:
            self.invoice_number = self.generate_invoice_number()

        self.full_clean()
        super().save(*args, **kwargs)

    @classmethod
    def generate_invoice_number(cls, today=None):
        """Monthly sequence: INV-202501-0001, INV-202501-0002, ..."""
        today = today or timezone.localdate()
        invoice_prefix = getattr(settings, 'INVOICE_NUMBER_PREFIX', 'INV')
        prefix = f"{invoice_prefix}-{today:%Y%m}-"

        # Suffixes outgrow four digits, so compare them as integers
        last_sequence = 0
        for number in cls.objects.filter(invoice_number__startswith=prefix).values_list('invoice_number', flat=True):
            try:
                last_sequence = max(last_sequence, int(number[len(prefix):]))
            except ValueError:
                logger.warning(f"Unexpected invoice number format: {number}")

        return f"{prefix}{last_sequence + 1:04d}"

    @property
    def balance_due(self):
        return max(Decimal('0.00'), self.total - self.amount_paid)

    @property
    def is_overdue(self):
        return (
            self.due_date < timezone.localdate() and
            self.status in [StatusChoices.SENT, StatusChoices.OVERDUE]
        )


class InvoiceItem(models.Model):
    """One priced line on an invoice."""
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='items')
    item_type = models.CharField(max_length=20, choices=LineItemTypes.choices, default=LineItemTypes.CUSTOM)
    subject = models.ForeignKey('students.Subject', on_delete=models.SET_NULL, null=True, blank=True)
    add_on = models.ForeignKey('students.AddOn', on_delete=models.SET_NULL, null=True, blank=True)

    description = models.CharField(max_length=200)
    quantity = models.IntegerField(default=1)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)

    discount_type = models.CharField(max_length=20, choices=DiscountTypes.choices, default=DiscountTypes.NONE)
    discount_value = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    discount_reason = models.CharField(max_length=255, blank=True)

    total = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        db_table = 'billing_invoiceitem'
        ordering = ['id']
        verbose_name = 'Invoice Item'
        verbose_name_plural = 'Invoice Items'

    def __str__(self):
        return f"{self.description} - Rs. {self.total:,.2f}"

    def clean(self):
        """Validate invoice item data."""
        if self.quantity <= 0:
            raise ValidationError({'quantity': 'Quantity must be positive.'})

        if self.unit_price < 0:
            raise ValidationError({'unit_price': 'Unit price cannot be negative.'})

        if self.discount_amount < 0:
            raise ValidationError({'discount_amount': 'Discount cannot be negative.'})

        if self.total < 0:
            raise ValidationError({'total': 'Line total cannot be negative.'})

        if self.item_type == LineItemTypes.SUBJECT and not self.subject_id:
            raise ValidationError({'subject': 'Subject line items need a subject.'})

        if self.item_type == LineItemTypes.ADDON and not self.add_on_id:
            raise ValidationError({'add_on': 'Add-on line items need an add-on.'})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)
