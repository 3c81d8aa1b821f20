# core/tests/test_middleware.py
import json

from django.core.exceptions import PermissionDenied
from django.http import Http404, HttpResponse
from django.test import RequestFactory, SimpleTestCase, TestCase

from core.exceptions import CatalogError, InvoiceError
from core.middleware import ExceptionHandlingMiddleware, SecurityHeadersMiddleware


class SecurityHeadersMiddlewareTest(SimpleTestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.middleware = SecurityHeadersMiddleware(lambda r: HttpResponse('ok'))

    def test_baseline_headers(self):
        response = self.middleware(self.factory.get('/students/subjects/'))

        self.assertEqual(response['X-Content-Type-Options'], 'nosniff')
        self.assertEqual(response['X-Frame-Options'], 'DENY')
        self.assertNotIn('Cache-Control', response)

    def test_billing_responses_not_cached(self):
        response = self.middleware(self.factory.get('/billing/invoices/'))
        self.assertEqual(response['Cache-Control'], 'no-store')


class ExceptionHandlingMiddlewareTest(SimpleTestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.middleware = ExceptionHandlingMiddleware(lambda r: HttpResponse('ok'))

    def test_user_friendly_business_error(self):
        request = self.factory.get('/billing/invoices/')
        response = self.middleware.process_exception(
            request, InvoiceError("Paid invoices cannot be edited.", user_friendly=True)
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(json.loads(response.content), {
            'message': "Paid invoices cannot be edited.",
            'error_code': 'INVOICE_ERROR',
        })

    def test_internal_business_error_message_hidden(self):
        request = self.factory.get('/students/subjects/')
        response = self.middleware.process_exception(request, CatalogError("lookup failed on table x"))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(json.loads(response.content)['message'], "Operation failed.")

    def test_system_error(self):
        request = self.factory.get('/billing/invoices/')
        response = self.middleware.process_exception(request, RuntimeError('boom'))

        self.assertEqual(response.status_code, 500)
        self.assertNotIn('boom', response.content.decode())

    def test_http404_left_to_django(self):
        request = self.factory.get('/billing/invoices/999999/')
        self.assertIsNone(self.middleware.process_exception(request, Http404("No Invoice matches the given query.")))

    def test_permission_denied_left_to_django(self):
        request = self.factory.get('/billing/invoices/')
        self.assertIsNone(self.middleware.process_exception(request, PermissionDenied()))


class HealthCheckTest(TestCase):
    def test_health(self):
        response = self.client.get('/health/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'healthy')

    def test_unknown_route_is_json_404(self):
        response = self.client.get('/no-such-page/')

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error_code'], 404)

    def test_unknown_invoice_is_json_404(self):
        response = self.client.get('/billing/invoices/999999/')

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error_code'], 404)
