# billing/tests/test_services.py
from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from billing.calculator import DiscountSpec, to_invoice_payload
from billing.models import Invoice
from billing.services import InvoiceDraftService, InvoiceService
from core.exceptions import CatalogError, InvoiceError
from shared.constants import DiscountTypes, StatusChoices
from students.models import AddOn, Enrollment, Student, Subject


class BillingTestMixin:
    def setUp(self):
        self.student = Student.objects.create(first_name='Bilal', last_name='Ahmed', class_level='a-level')
        self.physics = Subject.objects.create(name='Physics', code='PHY', base_fee=Decimal('6000'), order=2)
        self.english = Subject.objects.create(name='English', code='ENG', base_fee=Decimal('4000'), order=1)
        self.registration = AddOn.objects.create(name='Registration Fees', price=Decimal('5000'), order=1)
        self.online = AddOn.objects.create(name='Online Access', price=Decimal('6900'), order=2)
        self.due_date = timezone.localdate() + timedelta(days=7)


class InvoiceDraftServiceTest(BillingTestMixin, TestCase):
    def test_selection_follows_catalog_order(self):
        subjects, add_ons = InvoiceDraftService.build_selection(
            [{'id': self.physics.id, 'discount_type': None, 'discount_value': Decimal('0')}],
            [self.online.id],
        )

        self.assertEqual([s.id for s in subjects], [self.english.id, self.physics.id])
        self.assertEqual([s.selected for s in subjects], [False, True])
        self.assertEqual([a.selected for a in add_ons], [False, True])

    def test_compute_orders_line_items(self):
        totals = InvoiceDraftService.compute(
            [{'id': self.physics.id}, {'id': self.english.id}],
            [self.registration.id],
        )

        self.assertEqual(
            [item.name for item in totals.line_items],
            ['English', 'Physics', 'Registration Fees'],
        )
        self.assertEqual(totals.subtotal, Decimal('15000.00'))
        self.assertEqual(totals.total, Decimal('15000.00'))

    def test_enrollment_discount_is_prefilled(self):
        Enrollment.objects.create(
            student=self.student,
            subject=self.physics,
            discount_type=DiscountTypes.PERCENTAGE,
            discount_value=Decimal('10'),
            discount_reason='Sibling',
        )

        totals = InvoiceDraftService.compute([{'id': self.physics.id}], student=self.student)

        item = totals.line_items[0]
        self.assertEqual(item.discount_type, DiscountTypes.PERCENTAGE)
        self.assertEqual(item.discount_amount, Decimal('600.00'))
        self.assertEqual(item.reason, 'Sibling')
        self.assertEqual(totals.total, Decimal('5400.00'))

    def test_explicit_discount_overrides_enrollment(self):
        Enrollment.objects.create(
            student=self.student,
            subject=self.physics,
            discount_type=DiscountTypes.PERCENTAGE,
            discount_value=Decimal('10'),
        )

        totals = InvoiceDraftService.compute(
            [{'id': self.physics.id, 'discount_type': DiscountTypes.NONE, 'discount_value': Decimal('0')}],
            student=self.student,
        )
        self.assertEqual(totals.total, Decimal('6000.00'))

    def test_invoice_discount(self):
        totals = InvoiceDraftService.compute(
            [{'id': self.english.id}],
            invoice_discount=DiscountSpec.fixed(500),
        )
        self.assertEqual(totals.total, Decimal('3500.00'))
        self.assertEqual(totals.total_discount, Decimal('500.00'))

    def test_unknown_subject_raises(self):
        with self.assertRaises(CatalogError):
            InvoiceDraftService.compute([{'id': 987654}])


class InvoiceServiceTest(BillingTestMixin, TestCase):
    def _payload(self, subject_choices, add_on_ids=(), notes=''):
        totals = InvoiceDraftService.compute(subject_choices, add_on_ids)
        return to_invoice_payload(totals, self.student.id, self.due_date, notes)

    def test_create_invoice(self):
        payload = self._payload(
            [{'id': self.english.id, 'discount_type': DiscountTypes.FIXED, 'discount_value': Decimal('1000')}],
            [self.online.id],
            notes='Term 1',
        )

        invoice = InvoiceService.create_invoice(payload)

        self.assertTrue(invoice.invoice_number.startswith(f"INV-{timezone.localdate():%Y%m}-"))
        self.assertEqual(invoice.status, StatusChoices.DRAFT)
        self.assertEqual(invoice.subtotal, Decimal('10900.00'))
        self.assertEqual(invoice.discount_amount, Decimal('1000.00'))
        self.assertEqual(invoice.total, Decimal('9900.00'))
        self.assertEqual(invoice.notes, 'Term 1')

        items = list(invoice.items.all())
        self.assertEqual([i.description for i in items], ['English', 'Online Access'])
        self.assertEqual(items[0].subject, self.english)
        self.assertEqual(items[0].total, Decimal('3000.00'))
        self.assertEqual(items[1].add_on, self.online)

    def test_invoice_numbers_are_sequential(self):
        payload = self._payload([{'id': self.english.id}])
        first = InvoiceService.create_invoice(payload)
        second = InvoiceService.create_invoice(payload)

        self.assertEqual(int(second.invoice_number[-4:]), int(first.invoice_number[-4:]) + 1)

    def test_generate_invoice_number_format(self):
        self.assertEqual(InvoiceService.generate_invoice_number(date(2026, 3, 5)), 'INV-202603-0001')

    def test_update_replaces_items(self):
        invoice = InvoiceService.create_invoice(
            self._payload([{'id': self.english.id}, {'id': self.physics.id}])
        )

        updated = InvoiceService.update_invoice(invoice, self._payload([{'id': self.physics.id}]))

        self.assertEqual(updated.pk, invoice.pk)
        self.assertEqual(updated.total, Decimal('6000.00'))
        self.assertEqual([i.description for i in updated.items.all()], ['Physics'])

    def test_paid_invoice_cannot_be_updated(self):
        invoice = InvoiceService.create_invoice(self._payload([{'id': self.english.id}]))
        invoice.status = StatusChoices.PAID
        invoice.save()

        with self.assertRaises(InvoiceError):
            InvoiceService.update_invoice(invoice, self._payload([{'id': self.physics.id}]))

    def test_invalid_payload_is_not_persisted(self):
        payload = self._payload([{'id': self.english.id}])
        payload['total'] = '99999.00'

        with self.assertRaises(InvoiceError):
            InvoiceService.create_invoice(payload)
        self.assertFalse(Invoice.objects.exists())

    def test_unknown_student(self):
        payload = self._payload([{'id': self.english.id}])
        payload['student_id'] = 424242

        with self.assertRaises(CatalogError):
            InvoiceService.create_invoice(payload)

    def test_serialize_invoice(self):
        invoice = InvoiceService.create_invoice(self._payload([{'id': self.english.id}]))

        data = InvoiceService.serialize_invoice(invoice)

        self.assertEqual(data['id'], invoice.id)
        self.assertEqual(data['student_name'], 'Bilal Ahmed')
        self.assertEqual(data['total'], '4000.00')
        self.assertEqual(data['balance_due'], '4000.00')
        self.assertEqual(data['due_date'], self.due_date.isoformat())
        self.assertEqual(len(data['items']), 1)
        self.assertNotIn('items', InvoiceService.serialize_invoice(invoice, include_items=False))

    def test_list_invoices_by_student(self):
        InvoiceService.create_invoice(self._payload([{'id': self.english.id}]))
        other = Student.objects.create(first_name='Sara', last_name='Malik', class_level='o-level')

        self.assertEqual(InvoiceService.list_invoices(self.student.id).count(), 1)
        self.assertEqual(InvoiceService.list_invoices(other.id).count(), 0)
        self.assertEqual(InvoiceService.list_invoices().count(), 1)
