import json
import unittest

import httpx

from workshop_survey.errors import NetworkError, NotFoundError
from workshop_survey.remote import (
    AppwriteSubmissionBackend,
    SupabaseSubmissionBackend,
)

ROW = {
    "id": "6f1c",
    "name": "John Doe",
    "email": "john.doe@student.ncc.edu",
    "student_id": "NCC2024001",
    "workshop_topics": ["arduino-basics"],
    "programming_languages": ["Python"],
    "created_at": "2025-01-08T10:30:00+00:00",
}


class SupabaseBackendTests(unittest.TestCase):
    def make_backend(self, handler):
        return SupabaseSubmissionBackend(
            url="https://project.supabase.co/",
            api_key="anon-key",
            transport=httpx.MockTransport(handler),
        )

    def test_insert_returns_representation(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["prefer"] = request.headers.get("Prefer")
            seen["apikey"] = request.headers.get("apikey")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=[ROW])

        row = self.make_backend(handler).insert({"name": "John Doe"})
        self.assertEqual(row["id"], "6f1c")
        self.assertEqual(seen["method"], "POST")
        self.assertEqual(seen["path"], "/rest/v1/survey_submissions")
        self.assertEqual(seen["prefer"], "return=representation")
        self.assertEqual(seen["apikey"], "anon-key")
        self.assertEqual(seen["body"], {"name": "John Doe"})

    def test_list_orders_by_created_at_descending(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[ROW])

        rows = self.make_backend(handler).list_recent(100)
        self.assertEqual(rows, [ROW])
        self.assertEqual(seen["params"]["order"], "created_at.desc")
        self.assertEqual(seen["params"]["limit"], "100")

    def test_error_codes_are_mapped(self):
        cases = {
            "PGRST205": "table not found",
            "42P01": "relation does not exist",
            "23505": "unique-constraint violation",
            "XX000": None,
        }
        for code, category in cases.items():
            with self.subTest(code=code):

                def handler(request, code=code):
                    return httpx.Response(
                        400, json={"code": code, "message": "boom"}
                    )

                with self.assertRaises(NetworkError) as ctx:
                    self.make_backend(handler).list_recent(10)
                self.assertEqual(ctx.exception.category, category)

    def test_unreachable_host_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with self.assertRaises(NetworkError):
            self.make_backend(handler).insert({"name": "x"})

    def test_client_timeout_is_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        with self.assertRaises(NetworkError) as ctx:
            self.make_backend(handler).insert({"name": "x"})
        self.assertIn("timed out", str(ctx.exception))

    def test_delete_of_missing_row(self):
        def handler(request):
            self.assertEqual(request.headers.get("Prefer"), "return=representation")
            return httpx.Response(200, json=[])

        with self.assertRaises(NotFoundError):
            self.make_backend(handler).remove("missing")

    def test_update_of_missing_row(self):
        def handler(request):
            self.assertEqual(request.url.params["id"], "eq.missing")
            return httpx.Response(200, json=[])

        with self.assertRaises(NotFoundError):
            self.make_backend(handler).replace("missing", {"name": "x"})

    def test_delete_by_id(self):
        def handler(request):
            self.assertEqual(request.method, "DELETE")
            self.assertEqual(request.headers.get("Prefer"), "return=representation")
            self.assertEqual(request.url.params["id"], "eq.6f1c")
            return httpx.Response(200, json=[ROW])

        self.make_backend(handler).remove("6f1c")

    def test_malformed_list_payload(self):
        def handler(request):
            return httpx.Response(200, json={"rows": []})

        with self.assertRaises(NetworkError):
            self.make_backend(handler).list_recent(10)


class AppwriteBackendTests(unittest.TestCase):
    def make_backend(self, handler):
        return AppwriteSubmissionBackend(
            endpoint="https://cloud.appwrite.io/v1",
            project_id="proj",
            api_key="secret",
            database_id="db",
            transport=httpx.MockTransport(handler),
        )

    def test_insert_generates_unique_id_and_timestamp(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["project"] = request.headers.get("X-Appwrite-Project")
            body = json.loads(request.content)
            seen["body"] = body
            document = dict(body["data"])
            document["$id"] = "doc-1"
            return httpx.Response(201, json=document)

        doc = self.make_backend(handler).insert({"name": "John Doe"})
        self.assertEqual(doc["$id"], "doc-1")
        self.assertEqual(
            seen["path"], "/v1/databases/db/collections/survey_responses/documents"
        )
        self.assertEqual(seen["project"], "proj")
        self.assertEqual(seen["body"]["documentId"], "unique()")
        self.assertIn("submitted_at", seen["body"]["data"])

    def test_list_queries_order_and_limit(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["queries"] = [
                json.loads(q) for q in request.url.params.get_list("queries[]")
            ]
            return httpx.Response(200, json={"total": 1, "documents": [{"$id": "a"}]})

        docs = self.make_backend(handler).list_recent(100)
        self.assertEqual(docs, [{"$id": "a"}])
        self.assertIn(
            {"method": "orderDesc", "attribute": "submitted_at"}, seen["queries"]
        )
        self.assertIn({"method": "limit", "values": [100]}, seen["queries"])

    def test_missing_document_is_not_found(self):
        def handler(request):
            return httpx.Response(
                404, json={"message": "Document not found", "code": 404}
            )

        with self.assertRaises(NotFoundError):
            self.make_backend(handler).remove("gone")

    def test_client_timeout_is_network_error(self):
        def handler(request):
            raise httpx.ConnectTimeout("connect timed out", request=request)

        with self.assertRaises(NetworkError) as ctx:
            self.make_backend(handler).list_recent(10)
        self.assertIn("timed out", str(ctx.exception))

    def test_server_error_is_network_error(self):
        def handler(request):
            return httpx.Response(500, json={"message": "Server Error"})

        with self.assertRaises(NetworkError):
            self.make_backend(handler).replace("doc-1", {"name": "x"})


if __name__ == "__main__":
    unittest.main()
