# billing/forms.py
"""
Validation for invoice drafts.

The calculator accepts any discount value; range checks live here, at the
form boundary, together with the header-field and "at least one subject"
rules of the invoice wizard.
"""
import logging
from decimal import Decimal

from django import forms
from django.apps import apps

from shared.constants import DiscountTypes
from shared.utils.money import quantize_money, to_decimal

from .calculator import DiscountSpec

logger = logging.getLogger(__name__)

HUNDRED = Decimal('100')


# ============ HELPER FUNCTIONS ============

def _get_model(model_name: str, app_label: str = 'students'):
    """Get model lazily to avoid circular imports."""
    try:
        return apps.get_model(app_label, model_name)
    except LookupError as e:
        logger.error(f"Model not found: {app_label}.{model_name} - {e}")
        raise


def _parse_id(value, label):
    if isinstance(value, bool):
        raise forms.ValidationError(f"Invalid {label} id: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise forms.ValidationError(f"Invalid {label} id: {value!r}")


def parse_subject_choices(raw):
    """
    Normalize the submitted subject list.

    Each entry is either a bare subject id or a dict with ``id`` and the
    optional ``discount_type``, ``discount_value`` and ``discount_reason``.
    ``discount_type`` stays None when the caller did not send one, so a
    discount carried by an existing enrollment can be used instead.
    """
    if raw in (None, ''):
        return []
    if not isinstance(raw, (list, tuple)):
        raise forms.ValidationError("Subjects must be a list.")

    choices = []
    seen = set()
    for entry in raw:
        if not isinstance(entry, dict):
            entry = {'id': entry}

        subject_id = _parse_id(entry.get('id'), 'subject')
        if subject_id in seen:
            raise forms.ValidationError(f"Subject {subject_id} was selected twice.")
        seen.add(subject_id)

        discount_type = entry.get('discount_type')
        if discount_type is not None:
            try:
                discount_type = DiscountTypes.normalize(discount_type)
            except ValueError as e:
                raise forms.ValidationError(str(e))

        try:
            discount_value = to_decimal(entry.get('discount_value'), default=Decimal('0'))
        except ValueError:
            raise forms.ValidationError(f"Invalid discount for subject {subject_id}.")
        if discount_value != quantize_money(discount_value):
            raise forms.ValidationError(
                f"Discount for subject {subject_id} can have at most 2 decimal places."
            )

        choices.append({
            'id': subject_id,
            'discount_type': discount_type,
            'discount_value': discount_value,
            'discount_reason': str(entry.get('discount_reason') or '').strip(),
        })
    return choices


def validate_subject_discounts(choices):
    """
    Check every chosen subject exists and its discount is in range.
    Returns {subject_id: Subject} for the chosen subjects.
    """
    Subject = _get_model('Subject')
    subjects = Subject.objects.filter(is_active=True).in_bulk([c['id'] for c in choices])

    errors = []
    for choice in choices:
        subject = subjects.get(choice['id'])
        if subject is None:
            errors.append(f"Subject {choice['id']} is not available.")
            continue

        discount_type = choice['discount_type']
        value = choice['discount_value']
        if discount_type in (None, DiscountTypes.NONE):
            continue
        if value < 0:
            errors.append(f"{subject.name}: discount cannot be negative.")
        elif discount_type == DiscountTypes.PERCENTAGE and value > HUNDRED:
            errors.append(f"{subject.name}: percentage discount cannot exceed 100.")
        elif discount_type == DiscountTypes.FIXED and value > subject.base_fee:
            errors.append(f"{subject.name}: discount cannot exceed the subject fee of Rs. {subject.base_fee:,.2f}.")

    if errors:
        raise forms.ValidationError(errors)
    return subjects


def parse_add_on_ids(raw):
    if raw in (None, ''):
        return []
    if not isinstance(raw, (list, tuple)):
        raise forms.ValidationError("Add-ons must be a list.")

    add_on_ids = []
    for entry in raw:
        if isinstance(entry, dict):
            entry = entry.get('id')
        add_on_id = _parse_id(entry, 'add-on')
        if add_on_id not in add_on_ids:
            add_on_ids.append(add_on_id)

    AddOn = _get_model('AddOn')
    available = set(AddOn.objects.filter(id__in=add_on_ids, is_active=True).values_list('id', flat=True))
    missing = [a for a in add_on_ids if a not in available]
    if missing:
        raise forms.ValidationError(f"Add-ons not available: {', '.join(str(m) for m in missing)}")
    return add_on_ids


# ============ INVOICE DRAFT FORM ============

class InvoiceDraftForm(forms.Form):
    """
    Invoice wizard submission.

    With ``preview=True`` the header fields become optional and an empty
    subject list is allowed, so totals can be recomputed while the user is
    still filling in the form.
    """
    student_id = forms.IntegerField()
    due_date = forms.DateField(input_formats=['%Y-%m-%d'])
    notes = forms.CharField(required=False, max_length=2000)
    subjects = forms.JSONField(required=False)
    add_ons = forms.JSONField(required=False)
    invoice_discount_type = forms.CharField(required=False)
    invoice_discount_value = forms.DecimalField(required=False, max_digits=12, decimal_places=2)

    def __init__(self, *args, preview=False, **kwargs):
        super().__init__(*args, **kwargs)
        self.preview = preview
        self.student = None
        if preview:
            self.fields['student_id'].required = False
            self.fields['due_date'].required = False

    def clean_student_id(self):
        student_id = self.cleaned_data.get('student_id')
        if student_id is None:
            return None

        Student = _get_model('Student')
        try:
            self.student = Student.objects.get(id=student_id, is_active=True)
        except Student.DoesNotExist:
            raise forms.ValidationError("Student not found.")
        return student_id

    def clean_subjects(self):
        return parse_subject_choices(self.cleaned_data.get('subjects'))

    def clean_add_ons(self):
        return parse_add_on_ids(self.cleaned_data.get('add_ons'))

    def clean_invoice_discount_type(self):
        try:
            return DiscountTypes.normalize(self.cleaned_data.get('invoice_discount_type'))
        except ValueError as e:
            raise forms.ValidationError(str(e))

    def clean(self):
        cleaned_data = super().clean()
        subjects = cleaned_data.get('subjects')

        if subjects is not None:
            if not subjects and not self.preview:
                self.add_error(None, "Select at least one subject.")
            elif subjects:
                try:
                    validate_subject_discounts(subjects)
                except forms.ValidationError as e:
                    self.add_error('subjects', e)

        discount_type = cleaned_data.get('invoice_discount_type')
        discount_value = cleaned_data.get('invoice_discount_value') or Decimal('0')
        if discount_type and discount_type != DiscountTypes.NONE:
            if discount_value < 0:
                self.add_error('invoice_discount_value', "Discount cannot be negative.")
            elif discount_type == DiscountTypes.PERCENTAGE and discount_value > HUNDRED:
                self.add_error('invoice_discount_value', "Percentage discount cannot exceed 100.")

        return cleaned_data

    def invoice_discount(self):
        """Invoice-scope DiscountSpec from the cleaned data."""
        return DiscountSpec.from_fields(
            self.cleaned_data.get('invoice_discount_type'),
            self.cleaned_data.get('invoice_discount_value'),
        )

    def error_dict(self):
        """Errors as {field: [messages]} for JSON responses."""
        return {
            field: [error['message'] for error in errors]
            for field, errors in self.errors.get_json_data().items()
        }
