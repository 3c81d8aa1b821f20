# students/views.py
"""
STUDENT VIEWS - catalog reads and the enrollment wizard submit, as JSON.
"""
import json
import logging

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from core.exceptions import SchoolManagementException
from shared.constants import CLASS_LEVELS

from .forms import StudentEnrollmentForm
from .models import Student
from .services import CatalogService, EnrollmentService

logger = logging.getLogger(__name__)


# ============ CATALOG VIEWS ============

@require_GET
def subject_list_view(request):
    """Active subjects, optionally only those offered at ?class_level=."""
    class_level = request.GET.get('class_level', '').strip()
    if class_level and class_level not in dict(CLASS_LEVELS):
        return JsonResponse(
            {'message': f"Unknown class level: {class_level}"},
            status=400,
        )

    subjects = CatalogService.list_active_subjects(class_level or None)
    return JsonResponse([CatalogService.serialize_subject(s) for s in subjects], safe=False)


@require_GET
def add_on_list_view(request):
    add_ons = CatalogService.list_active_add_ons()
    return JsonResponse([CatalogService.serialize_add_on(a) for a in add_ons], safe=False)


@require_GET
def student_enrollments_view(request, student_id):
    """Current enrollments of a student, with the discount each one carries."""
    student = get_object_or_404(Student, id=student_id)
    enrollments = EnrollmentService.list_current_enrollments(student)

    return JsonResponse({
        'student_id': student.id,
        'student_name': student.full_name,
        'class_level': student.class_level,
        'enrollments': [EnrollmentService.serialize_enrollment(e) for e in enrollments],
    })


# ============ ENROLLMENT ============

@csrf_exempt
@require_POST
def student_enroll_view(request):
    """Create the student, their subject enrollments and the initial invoice."""
    from billing.calculator import summarize_totals
    from billing.services import InvoiceService

    try:
        data = json.loads(request.body or b'{}')
    except (ValueError, UnicodeDecodeError):
        data = None
    if not isinstance(data, dict):
        return JsonResponse({'message': "Request body must be a JSON object."}, status=400)

    form = StudentEnrollmentForm(data)
    if not form.is_valid():
        return JsonResponse(
            {'message': "Please check all required fields.", 'errors': form.error_dict()},
            status=400,
        )

    try:
        student, enrollments, invoice, totals = EnrollmentService.enroll_student(
            form.student_data(),
            form.cleaned_data['subjects'],
            form.cleaned_data['add_ons'],
            due_date=form.cleaned_data.get('due_date'),
        )
    except SchoolManagementException as e:
        logger.warning(f"Enrollment rejected: {e}")
        return JsonResponse(e.as_dict(), status=400)
    except Exception as e:
        logger.error(f"Enrollment error: {str(e)}", exc_info=True)
        return JsonResponse(
            {'message': "Enrollment failed. Please try again."},
            status=500,
        )

    return JsonResponse({
        'student': {
            'id': student.id,
            'roll_number': student.roll_number,
            'full_name': student.full_name,
            'class_level': student.class_level,
        },
        'enrollments': [EnrollmentService.serialize_enrollment(e) for e in enrollments],
        'invoice': InvoiceService.serialize_invoice(invoice) if invoice else None,
        'summary': summarize_totals(totals),
    }, status=201)
