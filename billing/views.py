# billing/views.py
"""
Invoice JSON endpoints: live totals preview, list, create, detail and update.
"""
import json
import logging

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from core.exceptions import SchoolManagementException

from .calculator import summarize_totals, to_invoice_payload
from .forms import InvoiceDraftForm
from .models import Invoice
from .services import InvoiceDraftService, InvoiceService

logger = logging.getLogger(__name__)


# ============ HELPERS ============

def _json_body(request):
    try:
        data = json.loads(request.body or b'{}')
    except (ValueError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None


def _bad_request(message, errors=None):
    body = {'message': message}
    if errors:
        body['errors'] = errors
    return JsonResponse(body, status=400)


def _compute_from_form(form):
    return InvoiceDraftService.compute(
        form.cleaned_data['subjects'],
        form.cleaned_data['add_ons'],
        student=form.student,
        invoice_discount=form.invoice_discount(),
    )


def _save_invoice(request, invoice=None):
    """Validate the draft, price it and persist it. Shared by create and update."""
    data = _json_body(request)
    if data is None:
        return _bad_request("Request body must be a JSON object.")

    form = InvoiceDraftForm(data)
    if not form.is_valid():
        return _bad_request("Please check all required fields.", form.error_dict())

    try:
        totals = _compute_from_form(form)
        payload = to_invoice_payload(
            totals,
            form.cleaned_data['student_id'],
            form.cleaned_data['due_date'],
            form.cleaned_data.get('notes'),
        )
        if invoice is None:
            invoice = InvoiceService.create_invoice(payload)
            status = 201
        else:
            invoice = InvoiceService.update_invoice(invoice, payload)
            status = 200
    except SchoolManagementException as e:
        logger.warning(f"Invoice draft rejected: {e}")
        return JsonResponse(e.as_dict(), status=400)
    except Exception as e:
        logger.error(f"Invoice save error: {str(e)}", exc_info=True)
        return JsonResponse(
            {'message': "Failed to save invoice. Please try again."},
            status=500,
        )

    return JsonResponse(InvoiceService.serialize_invoice(invoice), status=status)


# ============ INVOICE VIEWS ============

@csrf_exempt
@require_http_methods(['POST'])
def invoice_preview_view(request):
    """Recompute totals for the current selection without saving anything."""
    data = _json_body(request)
    if data is None:
        return _bad_request("Request body must be a JSON object.")

    form = InvoiceDraftForm(data, preview=True)
    if not form.is_valid():
        return _bad_request("Please check the selected items.", form.error_dict())

    try:
        totals = _compute_from_form(form)
    except SchoolManagementException as e:
        return JsonResponse(e.as_dict(), status=400)

    return JsonResponse(summarize_totals(totals))


@csrf_exempt
@require_http_methods(['GET', 'POST'])
def invoice_collection_view(request):
    """GET lists invoices (optionally for one student); POST creates one."""
    if request.method == 'POST':
        return _save_invoice(request)

    student_id = request.GET.get('student_id')
    if student_id and not student_id.isdigit():
        return _bad_request("student_id must be a number.")

    limit = request.GET.get('limit', '')
    invoices = InvoiceService.list_invoices(int(student_id) if student_id else None)
    if limit.isdigit():
        invoices = invoices[:int(limit)]

    return JsonResponse(
        [InvoiceService.serialize_invoice(invoice, include_items=False) for invoice in invoices],
        safe=False,
    )


@csrf_exempt
@require_http_methods(['GET', 'PUT'])
def invoice_detail_view(request, invoice_id):
    """GET returns one invoice with its items; PUT replaces it with a new draft."""
    invoice = get_object_or_404(Invoice.objects.select_related('student'), id=invoice_id)

    if request.method == 'PUT':
        return _save_invoice(request, invoice)

    return JsonResponse(InvoiceService.serialize_invoice(invoice))
