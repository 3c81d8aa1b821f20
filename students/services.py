# students/services.py
"""
STUDENT SERVICES - catalog reads and the complete enrollment flow.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from core.exceptions import CatalogError, ValidationError
from shared.constants import StatusChoices
from shared.utils.money import format_pkr

from .models import AddOn, Enrollment, Student, Subject

logger = logging.getLogger(__name__)


# ============ CATALOG SERVICE ============

class CatalogService:
    """Read-only access to the subject and add-on catalog."""

    @staticmethod
    def list_active_subjects(class_level: Optional[str] = None) -> List[Subject]:
        """Active subjects in catalog order, optionally only those offered at a class level."""
        subjects = list(Subject.objects.filter(is_active=True).order_by('order', 'name', 'id'))
        if class_level:
            subjects = [s for s in subjects if s.is_offered_at(class_level)]
        return subjects

    @staticmethod
    def list_active_add_ons() -> List[AddOn]:
        return list(AddOn.objects.filter(is_active=True).order_by('order', 'name', 'id'))

    @staticmethod
    def serialize_subject(subject: Subject) -> Dict[str, Any]:
        return {
            'id': subject.id,
            'name': subject.name,
            'code': subject.code,
            'class_levels': subject.class_levels,
            'base_fee': f"{subject.base_fee:.2f}",
        }

    @staticmethod
    def serialize_add_on(add_on: AddOn) -> Dict[str, Any]:
        return {
            'id': add_on.id,
            'name': add_on.name,
            'description': add_on.description,
            'category': add_on.category,
            'price': f"{add_on.price:.2f}",
        }


# ============ ENROLLMENT SERVICE ============

class EnrollmentService:
    """
    Enrollment reads and the "complete enrollment" flow: student, subject
    enrollments and the first invoice, created together.
    """

    @staticmethod
    def list_current_enrollments(student) -> List[Enrollment]:
        return list(
            Enrollment.objects.filter(student=student, is_active=True, subject__is_active=True)
            .select_related('subject')
        )

    @staticmethod
    def serialize_enrollment(enrollment: Enrollment) -> Dict[str, Any]:
        return {
            'id': enrollment.id,
            'subject_id': enrollment.subject_id,
            'subject_name': enrollment.subject.name,
            'enrolled_at': enrollment.enrolled_at.isoformat(),
            'discount_type': enrollment.discount_type,
            'discount_value': f"{enrollment.discount_value:.2f}",
            'discount_reason': enrollment.discount_reason,
        }

    @staticmethod
    def enroll_student(
        student_data: Dict[str, Any],
        subject_choices: Iterable[Dict[str, Any]],
        add_on_ids: Iterable[int] = (),
        due_date=None,
    ) -> Tuple[Student, List[Enrollment], Any, Any]:
        """
        Create a student, enroll them in the chosen subjects and raise the
        initial invoice.

        Args:
            student_data: Student fields (form cleaned_data)
            subject_choices: [{id, discount_type, discount_value, discount_reason}]
            add_on_ids: Add-on ids to bill once
            due_date: Invoice due date, defaults to BILLING_DEFAULT_DUE_DAYS from today

        Returns:
            Tuple: (student, enrollments, invoice or None, totals)

        Raises:
            ValidationError: If the student or an enrollment is invalid
            CatalogError: If a subject or add-on is unknown
        """
        from billing.calculator import DiscountSpec, to_invoice_payload
        from billing.services import InvoiceDraftService, InvoiceService

        subject_choices = list(subject_choices)
        if not subject_choices:
            raise ValidationError("Select at least one subject.", user_friendly=True)

        with transaction.atomic():
            try:
                student = Student(**student_data)
                student.full_clean(exclude=['roll_number'])
                student.save()
            except DjangoValidationError as e:
                raise ValidationError(
                    "Student details are invalid.",
                    user_friendly=True,
                    details=getattr(e, 'message_dict', {'__all__': e.messages}),
                )

            subjects = Subject.objects.filter(is_active=True).in_bulk([c['id'] for c in subject_choices])
            enrollments = []
            for choice in subject_choices:
                subject = subjects.get(choice['id'])
                if subject is None:
                    raise CatalogError(f"Subject {choice['id']} is not available.", user_friendly=True)
                if not subject.is_offered_at(student.class_level):
                    raise CatalogError(
                        f"{subject.name} is not offered at {student.get_class_level_display()}.",
                        user_friendly=True,
                    )

                discount = DiscountSpec.from_fields(choice.get('discount_type'), choice.get('discount_value'))
                enrollment = Enrollment(
                    student=student,
                    subject=subject,
                    discount_type=discount.discount_type,
                    discount_value=discount.value,
                    discount_reason='' if discount.is_none else (choice.get('discount_reason') or ''),
                )
                try:
                    enrollment.full_clean()
                except DjangoValidationError as e:
                    raise ValidationError(
                        f"Invalid enrollment for {subject.name}.",
                        user_friendly=True,
                        details=getattr(e, 'message_dict', {'__all__': e.messages}),
                    )
                enrollment.save()
                enrollments.append(enrollment)
                logger.info(f"Enrolled {student.full_name} in {subject.name} - Fee: {format_pkr(subject.base_fee)}")

            totals = InvoiceDraftService.compute(
                [dict(c, discount_type=e.discount_type) for c, e in zip(subject_choices, enrollments)],
                add_on_ids,
                student=student,
            )

            invoice = None
            if totals.total > 0:
                due_date = due_date or (
                    timezone.localdate() + timedelta(days=getattr(settings, 'BILLING_DEFAULT_DUE_DAYS', 7))
                )
                notes = f"Initial enrollment invoice for {', '.join(e.subject.name for e in enrollments)}"
                if totals.total_discount > 0:
                    notes += f" ({format_pkr(totals.total_discount)} discount applied)"

                payload = to_invoice_payload(totals, student.id, due_date, notes)
                invoice = InvoiceService.create_invoice(payload, status=StatusChoices.SENT)
            else:
                logger.info(f"No invoice raised for {student.full_name}: nothing to bill")

        logger.info(f"Student enrolled: {student.full_name} ({student.roll_number}), {len(enrollments)} subject(s)")
        return student, enrollments, invoice, totals
