# billing/tests/test_forms.py
from datetime import timedelta
from decimal import Decimal

from django import forms
from django.test import TestCase
from django.utils import timezone

from billing.forms import InvoiceDraftForm, parse_subject_choices
from shared.constants import DiscountTypes
from students.models import AddOn, Student, Subject


class ParseSubjectChoicesTest(TestCase):
    def test_bare_ids_and_dicts(self):
        choices = parse_subject_choices([3, {'id': '4', 'discount_type': 'amount', 'discount_value': '250'}])

        self.assertEqual(choices[0], {
            'id': 3, 'discount_type': None, 'discount_value': Decimal('0'), 'discount_reason': '',
        })
        self.assertEqual(choices[1]['id'], 4)
        self.assertEqual(choices[1]['discount_type'], DiscountTypes.FIXED)
        self.assertEqual(choices[1]['discount_value'], Decimal('250'))

    def test_duplicates_rejected(self):
        with self.assertRaises(forms.ValidationError):
            parse_subject_choices([1, {'id': 1}])

    def test_third_decimal_rejected(self):
        with self.assertRaises(forms.ValidationError):
            parse_subject_choices([{'id': 1, 'discount_type': 'percentage', 'discount_value': '12.345'}])

    def test_two_decimals_accepted(self):
        choices = parse_subject_choices([{'id': 1, 'discount_type': 'percentage', 'discount_value': '12.35'}])
        self.assertEqual(choices[0]['discount_value'], Decimal('12.35'))


class InvoiceDraftFormTest(TestCase):
    def setUp(self):
        self.student = Student.objects.create(first_name='Ayesha', last_name='Khan', class_level='o-level')
        self.math = Subject.objects.create(name='Mathematics', code='MATH', base_fee=Decimal('5000'), order=1)
        self.physics = Subject.objects.create(name='Physics', code='PHY', base_fee=Decimal('3000'), order=2)
        self.pack = AddOn.objects.create(name='Resource Pack', price=Decimal('4000'))
        self.due_date = (timezone.localdate() + timedelta(days=7)).isoformat()

    def _data(self, **overrides):
        data = {
            'student_id': self.student.id,
            'due_date': self.due_date,
            'subjects': [{'id': self.math.id, 'discount_type': 'percentage', 'discount_value': 10}],
            'add_ons': [self.pack.id],
        }
        data.update(overrides)
        return data

    def test_valid_draft(self):
        form = InvoiceDraftForm(self._data())
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.student, self.student)
        self.assertEqual(form.cleaned_data['add_ons'], [self.pack.id])
        self.assertTrue(form.invoice_discount().is_none)

    def test_requires_at_least_one_subject(self):
        form = InvoiceDraftForm(self._data(subjects=[]))
        self.assertFalse(form.is_valid())
        self.assertIn('__all__', form.error_dict())

    def test_preview_allows_empty_header_and_selection(self):
        form = InvoiceDraftForm({'subjects': [], 'add_ons': [self.pack.id]}, preview=True)
        self.assertTrue(form.is_valid(), form.errors)
        self.assertIsNone(form.student)

    def test_header_fields_required(self):
        form = InvoiceDraftForm(self._data(student_id=None, due_date=''))
        self.assertFalse(form.is_valid())
        self.assertIn('student_id', form.errors)
        self.assertIn('due_date', form.errors)

    def test_unknown_student(self):
        form = InvoiceDraftForm(self._data(student_id=99999))
        self.assertFalse(form.is_valid())
        self.assertIn('student_id', form.errors)

    def test_percentage_with_three_decimals_rejected(self):
        form = InvoiceDraftForm(self._data(subjects=[
            {'id': self.math.id, 'discount_type': 'percentage', 'discount_value': '12.345'},
        ]))
        self.assertFalse(form.is_valid())
        self.assertIn('subjects', form.errors)

    def test_percentage_over_hundred_rejected(self):
        form = InvoiceDraftForm(self._data(subjects=[
            {'id': self.math.id, 'discount_type': 'percentage', 'discount_value': 150},
        ]))
        self.assertFalse(form.is_valid())
        self.assertIn('subjects', form.errors)

    def test_fixed_discount_above_fee_rejected(self):
        form = InvoiceDraftForm(self._data(subjects=[
            {'id': self.physics.id, 'discount_type': 'fixed', 'discount_value': 3500},
        ]))
        self.assertFalse(form.is_valid())
        self.assertIn('subjects', form.errors)

    def test_negative_discount_rejected(self):
        form = InvoiceDraftForm(self._data(subjects=[
            {'id': self.math.id, 'discount_type': 'fixed', 'discount_value': -1},
        ]))
        self.assertFalse(form.is_valid())

    def test_inactive_subject_rejected(self):
        self.physics.is_active = False
        self.physics.save()

        form = InvoiceDraftForm(self._data(subjects=[self.physics.id]))
        self.assertFalse(form.is_valid())
        self.assertIn('subjects', form.errors)

    def test_unknown_add_on_rejected(self):
        form = InvoiceDraftForm(self._data(add_ons=[424242]))
        self.assertFalse(form.is_valid())
        self.assertIn('add_ons', form.errors)

    def test_invoice_discount(self):
        form = InvoiceDraftForm(self._data(invoice_discount_type='percentage', invoice_discount_value='5'))
        self.assertTrue(form.is_valid(), form.errors)
        discount = form.invoice_discount()
        self.assertEqual(discount.discount_type, DiscountTypes.PERCENTAGE)
        self.assertEqual(discount.value, Decimal('5'))

    def test_invoice_discount_type_validated(self):
        form = InvoiceDraftForm(self._data(invoice_discount_type='voucher'))
        self.assertFalse(form.is_valid())
        self.assertIn('invoice_discount_type', form.errors)
