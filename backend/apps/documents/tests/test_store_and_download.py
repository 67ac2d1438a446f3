from __future__ import annotations

from unittest.mock import patch

from django.core.cache import caches
from django.test import SimpleTestCase, override_settings
from django.urls import reverse
from redis.exceptions import ConnectionError as RedisConnectionError
from rest_framework.test import APITestCase

from apps.documents.services.exceptions import StorageError
from apps.documents.services.store import DocumentStore

from .fakes import make_config


class DocumentStoreTests(SimpleTestCase):
    def setUp(self):
        caches["documents"].clear()
        self.store = DocumentStore(make_config())

    def test_missing_document_reads_as_none(self):
        self.assertIsNone(self.store.get())

    def test_new_value_overwrites_the_previous_one(self):
        self.store.set("first")
        self.store.set("second")
        self.assertEqual(self.store.get(), "second")
        self.assertEqual(self.store.key, "lecture:document")

    def test_unreachable_backend_raises_storage_error(self):
        with patch.object(DocumentStore, "backend") as backend:
            backend.get.side_effect = RedisConnectionError("refused")
            backend.set.side_effect = RedisConnectionError("refused")
            with self.assertRaises(StorageError):
                self.store.get()
            with self.assertRaises(StorageError):
                self.store.set("value")


class DocumentDownloadTests(APITestCase):
    def setUp(self):
        caches["documents"].clear()
        self.url = reverse("document-download")

    def test_nothing_generated_yet_is_404(self):
        res = self.client.get(self.url)
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.json()["detail"], "No document has been generated yet.")

    def test_stored_document_is_served_as_markdown_attachment(self):
        caches["documents"].set("lecture:document", "**Title**\n\n# Chapter\n", timeout=None)

        res = self.client.get(self.url)

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.content.decode("utf-8"), "**Title**\n\n# Chapter\n")
        self.assertTrue(res["Content-Type"].startswith("text/markdown"))
        self.assertIn('filename="lecture.md"', res["Content-Disposition"])

    def test_unreachable_store_is_503(self):
        with patch.object(DocumentStore, "get", side_effect=StorageError("Document store unavailable: refused")):
            res = self.client.get(self.url)
        self.assertEqual(res.status_code, 503)

    def test_health_endpoint(self):
        res = self.client.get("/api/health/")
        self.assertEqual(res.status_code, 200)


class GenerationConfigTests(SimpleTestCase):
    def test_settings_resolve_into_config(self):
        from apps.documents.services.config import GenerationConfig

        config = GenerationConfig.from_settings()
        self.assertEqual(config.api_key, "test-key")
        self.assertEqual(config.max_attempts, 3)
        self.assertFalse(config.use_blueprints)

    def test_missing_values_are_rejected_up_front(self):
        from django.core.exceptions import ImproperlyConfigured

        from apps.documents.services.config import GenerationConfig

        cases = [
            {"LECTUREGEN_API_KEY": ""},
            {"LECTUREGEN_API_BASE": "  "},
            {
                "CACHES": {
                    "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
                    "documents": {"BACKEND": "django.core.cache.backends.redis.RedisCache", "LOCATION": ""},
                }
            },
            {"GENERATION_MAX_ATTEMPTS": 0},
        ]
        for overrides in cases:
            with self.subTest(overrides=overrides):
                with override_settings(**overrides):
                    with self.assertRaises(ImproperlyConfigured):
                        GenerationConfig.from_settings()
