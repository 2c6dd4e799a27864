# apps/utils/tests.py
import json
import logging

from django.test import RequestFactory, SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated
from rest_framework.exceptions import ValidationError as DRFValidationError

from .exceptions import NotFoundError, ValidationError, custom_exception_handler
from .logging import JSONFormatter
from .middleware import GlobalExceptionMiddleware
from .validators import find_missing_fields


class ValidatorTests(SimpleTestCase):
    def test_find_missing_fields(self):
        data = {"name": "A", "phone": "  ", "city": None, "pincode": 560001}
        self.assertEqual(
            find_missing_fields(data, ("name", "phone", "city", "state", "pincode")),
            ["phone", "city", "state", "pincode"],
        )


class ExceptionHandlerTests(SimpleTestCase):
    def test_business_errors_are_400(self):
        resp = custom_exception_handler(ValidationError("No items provided to create order"), {})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["success"], False)
        self.assertEqual(resp.data["code"], "validation_error")

        resp = custom_exception_handler(NotFoundError("Product not found: 7"), {})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "not_found")

    def test_drf_validation_error_keeps_field_errors(self):
        resp = custom_exception_handler(DRFValidationError({"quantity": ["Must be positive."]}), {})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["message"], "quantity: Must be positive.")
        self.assertIn("quantity", resp.data["errors"])

    def test_auth_errors_keep_status(self):
        resp = custom_exception_handler(NotAuthenticated(), {})
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(resp.data["success"])

    def test_unknown_errors_are_500(self):
        logging.disable(logging.CRITICAL)
        try:
            resp = custom_exception_handler(RuntimeError("db exploded"), {})
        finally:
            logging.disable(logging.NOTSET)
        self.assertEqual(resp.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(resp.data["message"], "Internal Server Error")
        self.assertNotIn("error", resp.data)


class JSONFormatterTests(SimpleTestCase):
    def test_redacts_secrets_and_copies_context(self):
        record = logging.LogRecord("apps.orders", logging.INFO, __file__, 10, {"password": "x", "total": 5}, None, None)
        record.order_id = 42

        out = json.loads(JSONFormatter().format(record))

        self.assertIn("***REDACTED***", out["msg"])
        self.assertNotIn("'x'", out["msg"])
        self.assertEqual(out["order_id"], 42)
        self.assertEqual(out["lvl"], "INFO")


class GlobalExceptionMiddlewareTests(SimpleTestCase):
    def test_api_paths_get_json(self):
        middleware = GlobalExceptionMiddleware(lambda request: None)
        request = RequestFactory().get("/api/v1/orders/")

        logging.disable(logging.CRITICAL)
        try:
            resp = middleware.process_exception(request, RuntimeError("boom"))
        finally:
            logging.disable(logging.NOTSET)

        self.assertEqual(resp.status_code, 500)
        self.assertFalse(json.loads(resp.content)["success"])

    def test_other_paths_fall_through(self):
        middleware = GlobalExceptionMiddleware(lambda request: None)
        request = RequestFactory().get("/admin/")

        logging.disable(logging.CRITICAL)
        try:
            self.assertIsNone(middleware.process_exception(request, RuntimeError("boom")))
        finally:
            logging.disable(logging.NOTSET)


class HealthCheckTests(TestCase):
    def test_health_is_public(self):
        resp = self.client.get(reverse("health-check"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["components"], {"db": "ok", "cache": "ok"})
