# billing/services.py
"""
BILLING SERVICES - invoice drafts and invoice persistence.
Pricing itself lives in billing.calculator; this module feeds it from the
catalog and writes its output to the database.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.apps import apps
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils.dateparse import parse_date

from core.exceptions import CatalogError, InvoiceError
from shared.constants import DiscountTypes, LineItemTypes, StatusChoices
from shared.utils.money import format_money, to_decimal

from .calculator import (
    AddOnSelection,
    DiscountSpec,
    InvoiceTotals,
    SubjectSelection,
    compute_invoice_totals,
)
from .models import Invoice, InvoiceItem

logger = logging.getLogger(__name__)


# ============ HELPER FUNCTIONS ============

def _get_model(model_name: str, app_label: str = 'students'):
    """Get model lazily to avoid circular imports."""
    try:
        return apps.get_model(app_label, model_name)
    except LookupError as e:
        logger.error(f"Model not found: {app_label}.{model_name} - {e}")
        raise


# ============ DRAFT SERVICE ============

class InvoiceDraftService:
    """
    Builds the selection state the calculator works on from catalog data.
    """

    @staticmethod
    def build_selection(
        subject_choices: Iterable[Dict[str, Any]],
        add_on_ids: Iterable[int] = (),
        student=None,
    ) -> Tuple[List[SubjectSelection], List[AddOnSelection]]:
        """
        Return every active catalog subject and add-on, in catalog order,
        with the chosen ones marked as selected.

        A chosen subject without an explicit ``discount_type`` inherits the
        discount of the student's current enrollment in that subject.

        Raises:
            CatalogError: If a chosen subject or add-on is not in the active catalog
        """
        from students.services import CatalogService, EnrollmentService

        choices = {choice['id']: choice for choice in subject_choices}
        add_on_ids = set(add_on_ids)

        enrollments = {}
        if student is not None:
            enrollments = {
                e.subject_id: e for e in EnrollmentService.list_current_enrollments(student)
            }

        subjects = []
        for subject in CatalogService.list_active_subjects():
            choice = choices.pop(subject.id, None)
            enrollment = enrollments.get(subject.id)

            discount = DiscountSpec()
            reason = ''
            if choice is not None and choice.get('discount_type') is not None:
                discount = DiscountSpec.from_fields(choice['discount_type'], choice.get('discount_value'))
                reason = choice.get('discount_reason') or ''
            elif enrollment is not None:
                discount = DiscountSpec.from_fields(enrollment.discount_type, enrollment.discount_value)
                reason = enrollment.discount_reason

            subjects.append(SubjectSelection(
                id=subject.id,
                name=subject.name,
                unit_price=subject.base_fee,
                selected=choice is not None,
                discount=discount,
                reason=reason if not discount.is_none else '',
                currently_enrolled=enrollment is not None,
            ))

        add_ons = []
        for add_on in CatalogService.list_active_add_ons():
            add_ons.append(AddOnSelection(
                id=add_on.id,
                name=add_on.name,
                unit_price=add_on.price,
                selected=add_on.id in add_on_ids,
            ))
            add_on_ids.discard(add_on.id)

        if choices or add_on_ids:
            missing = sorted(str(i) for i in list(choices) + list(add_on_ids))
            raise CatalogError(
                f"Items are not available in the catalog: {', '.join(missing)}",
                user_friendly=True,
            )

        return subjects, add_ons

    @staticmethod
    def compute(
        subject_choices: Iterable[Dict[str, Any]],
        add_on_ids: Iterable[int] = (),
        student=None,
        invoice_discount: Optional[DiscountSpec] = None,
    ) -> InvoiceTotals:
        subjects, add_ons = InvoiceDraftService.build_selection(subject_choices, add_on_ids, student)
        return compute_invoice_totals(subjects, add_ons, invoice_discount)


# ============ INVOICE SERVICE ============

class InvoiceService:
    """
    Persists invoices from the payload built by
    ``billing.calculator.to_invoice_payload``.
    """

    @staticmethod
    def create_invoice(payload: Dict[str, Any], status: str = StatusChoices.DRAFT) -> Invoice:
        """
        Create an invoice and its line items in one transaction.

        Raises:
            InvoiceError: If the payload does not describe a valid invoice
        """
        try:
            with transaction.atomic():
                invoice = Invoice(status=status)
                InvoiceService._apply_header(invoice, payload)
                invoice.save()
                InvoiceService._replace_items(invoice, payload.get('items') or [])
        except DjangoValidationError as e:
            logger.warning(f"Invoice rejected: {e}")
            raise InvoiceError(
                "Invoice could not be saved. Please check the invoice details.",
                user_friendly=True,
                details=getattr(e, 'message_dict', {'__all__': e.messages}),
            )

        logger.info(
            f"Invoice {invoice.invoice_number} created for student {invoice.student_id}: "
            f"subtotal={invoice.subtotal} discount={invoice.discount_amount} total={invoice.total}"
        )
        return invoice

    @staticmethod
    def update_invoice(invoice: Invoice, payload: Dict[str, Any]) -> Invoice:
        """
        Overwrite an invoice's header and replace all of its line items.
        The last submitted draft wins.
        """
        if invoice.status == StatusChoices.PAID:
            raise InvoiceError("Paid invoices cannot be edited.", user_friendly=True)

        try:
            with transaction.atomic():
                InvoiceService._apply_header(invoice, payload)
                invoice.save()
                InvoiceService._replace_items(invoice, payload.get('items') or [])
        except DjangoValidationError as e:
            logger.warning(f"Invoice {invoice.invoice_number} update rejected: {e}")
            raise InvoiceError(
                "Invoice could not be saved. Please check the invoice details.",
                user_friendly=True,
                details=getattr(e, 'message_dict', {'__all__': e.messages}),
            )

        logger.info(f"Invoice {invoice.invoice_number} updated: total={invoice.total}")
        return invoice

    @staticmethod
    def generate_invoice_number(today: Optional[date] = None) -> str:
        """Next free invoice number for the month, e.g. INV-202610-0001."""
        return Invoice.generate_invoice_number(today=today)

    @staticmethod
    def _apply_header(invoice: Invoice, payload: Dict[str, Any]) -> None:
        Student = _get_model('Student')
        try:
            invoice.student = Student.objects.get(id=payload.get('student_id'))
        except (Student.DoesNotExist, ValueError, TypeError):
            raise CatalogError("Student not found.", user_friendly=True)

        due_date = payload.get('due_date')
        if isinstance(due_date, str):
            due_date = parse_date(due_date)
        if not isinstance(due_date, date):
            raise InvoiceError("A valid due date is required.", user_friendly=True)

        try:
            invoice.subtotal = to_decimal(payload.get('subtotal'))
            invoice.discount_amount = to_decimal(payload.get('discount_amount'), default=Decimal('0'))
            invoice.total = to_decimal(payload.get('total'))
        except ValueError as e:
            raise InvoiceError(f"Invalid invoice amount: {e}", user_friendly=True)

        invoice.due_date = due_date
        invoice.notes = payload.get('notes') or ''

    @staticmethod
    def _replace_items(invoice: Invoice, items: List[Dict[str, Any]]) -> None:
        invoice.items.all().delete()
        for item in items:
            try:
                InvoiceItem.objects.create(
                    invoice=invoice,
                    item_type=item.get('type') or LineItemTypes.CUSTOM,
                    subject_id=item.get('subject_id'),
                    add_on_id=item.get('add_on_id'),
                    description=item.get('description') or '',
                    quantity=int(item.get('quantity') or 1),
                    unit_price=to_decimal(item.get('unit_price')),
                    discount_type=DiscountTypes.normalize(item.get('discount_type')),
                    discount_value=to_decimal(item.get('discount_value'), default=Decimal('0')),
                    discount_amount=to_decimal(item.get('discount_amount'), default=Decimal('0')),
                    discount_reason=item.get('discount_reason') or '',
                    total=to_decimal(item.get('total')),
                )
            except ValueError as e:
                raise InvoiceError(f"Invalid invoice item: {e}", user_friendly=True)

    @staticmethod
    def list_invoices(student_id: Optional[int] = None):
        invoices = Invoice.objects.select_related('student').prefetch_related('items')
        if student_id:
            invoices = invoices.filter(student_id=student_id)
        return invoices

    @staticmethod
    def serialize_invoice(invoice: Invoice, include_items: bool = True) -> Dict[str, Any]:
        data = {
            'id': invoice.id,
            'invoice_number': invoice.invoice_number,
            'student_id': invoice.student_id,
            'student_name': invoice.student.full_name,
            'issue_date': invoice.issue_date.isoformat(),
            'due_date': invoice.due_date.isoformat(),
            'subtotal': format_money(invoice.subtotal),
            'discount_amount': format_money(invoice.discount_amount),
            'total': format_money(invoice.total),
            'amount_paid': format_money(invoice.amount_paid),
            'balance_due': format_money(invoice.balance_due),
            'status': invoice.status,
            'is_overdue': invoice.is_overdue,
            'notes': invoice.notes,
        }
        if include_items:
            data['items'] = [
                {
                    'id': item.id,
                    'type': item.item_type,
                    'subject_id': item.subject_id,
                    'add_on_id': item.add_on_id,
                    'description': item.description,
                    'quantity': item.quantity,
                    'unit_price': format_money(item.unit_price),
                    'discount_type': item.discount_type,
                    'discount_value': format_money(item.discount_value),
                    'discount_amount': format_money(item.discount_amount),
                    'discount_reason': item.discount_reason,
                    'total': format_money(item.total),
                }
                for item in invoice.items.all()
            ]
        return data
