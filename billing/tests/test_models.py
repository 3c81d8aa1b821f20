# billing/tests/test_models.py
from datetime import timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from billing.models import Invoice, InvoiceItem
from shared.constants import LineItemTypes, StatusChoices
from students.models import Student


class InvoiceModelTest(TestCase):
    def setUp(self):
        self.student = Student.objects.create(first_name='Hamza', last_name='Iqbal', class_level='o-level')
        self.today = timezone.localdate()

    def _invoice(self, **kwargs):
        fields = {
            'student': self.student,
            'due_date': self.today + timedelta(days=7),
            'subtotal': Decimal('5000.00'),
            'discount_amount': Decimal('500.00'),
            'total': Decimal('4500.00'),
        }
        fields.update(kwargs)
        return Invoice(**fields)

    def test_number_generated_on_save(self):
        invoice = self._invoice()
        invoice.save()
        self.assertEqual(invoice.invoice_number, f"INV-{self.today:%Y%m}-0001")

    def test_number_sequence_passes_9999(self):
        prefix = f"INV-{self.today:%Y%m}-"
        self._invoice(invoice_number=f"{prefix}9999").save()
        self._invoice(invoice_number=f"{prefix}10000").save()

        self.assertEqual(Invoice.generate_invoice_number(self.today), f"{prefix}10001")

    def test_other_months_do_not_count(self):
        self._invoice(invoice_number="INV-199901-0042").save()
        self.assertEqual(Invoice.generate_invoice_number(self.today), f"INV-{self.today:%Y%m}-0001")

    def test_total_cannot_exceed_subtotal(self):
        with self.assertRaises(ValidationError):
            self._invoice(total=Decimal('6000.00')).save()

    def test_due_date_not_before_issue_date(self):
        with self.assertRaises(ValidationError):
            self._invoice(due_date=self.today - timedelta(days=1)).save()

    def test_balance_and_overdue(self):
        invoice = self._invoice(amount_paid=Decimal('1000.00'), status=StatusChoices.SENT)
        invoice.save()

        self.assertEqual(invoice.balance_due, Decimal('3500.00'))
        self.assertFalse(invoice.is_overdue)

        Invoice.objects.filter(pk=invoice.pk).update(due_date=self.today - timedelta(days=3))
        invoice.refresh_from_db()
        self.assertTrue(invoice.is_overdue)


class InvoiceItemModelTest(TestCase):
    def setUp(self):
        student = Student.objects.create(first_name='Hamza', last_name='Iqbal', class_level='o-level')
        self.invoice = Invoice.objects.create(
            student=student,
            due_date=timezone.localdate() + timedelta(days=7),
            subtotal=Decimal('1000.00'),
            total=Decimal('1000.00'),
        )

    def test_subject_line_needs_subject(self):
        with self.assertRaises(ValidationError):
            InvoiceItem.objects.create(
                invoice=self.invoice,
                item_type=LineItemTypes.SUBJECT,
                description='Mathematics',
                unit_price=Decimal('1000.00'),
                total=Decimal('1000.00'),
            )

    def test_custom_line(self):
        item = InvoiceItem.objects.create(
            invoice=self.invoice,
            description='Late fee',
            unit_price=Decimal('1000.00'),
            total=Decimal('1000.00'),
        )
        self.assertEqual(item.item_type, LineItemTypes.CUSTOM)
