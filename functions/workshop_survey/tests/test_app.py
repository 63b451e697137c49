import csv
import io
import unittest

from fastapi.testclient import TestClient

from workshop_survey.adapter import BackendKind
from workshop_survey.app import create_app
from workshop_survey.dependencies import get_session_registry, get_submission_store
from workshop_survey.errors import NetworkError
from workshop_survey.local_storage import InMemoryKeyValueStore, LocalSubmissionStore
from workshop_survey.remote import InMemorySubmissionBackend
from workshop_survey.store import SubmissionStore

SUBMISSION = {
    "name": "John Doe",
    "email": "john.doe@student.ncc.edu",
    "phone": "+1234567890",
    "studentId": "NCC2024001",
    "batch": "12th",
    "department": "CSE",
    "experienceLevel": "beginner",
    "workshopTopics": ["arduino-basics", "sensor-integration"],
    "programmingLanguages": ["Python"],
    "availability": "22 June 2025-9 AM - 4 PM",
    "expectations": 'I want "hands-on" robots',
    "additionalComments": "",
}


class OfflineBackend:
    kind = BackendKind.SUPABASE

    def _fail(self, *args):
        raise NetworkError("connection refused")

    insert = list_recent = replace = remove = ping = _fail

    def describe(self):
        return {"backend": "supabase", "configured": True}


class SurveyApiTestBase(unittest.TestCase):
    remote_factory = InMemorySubmissionBackend

    def setUp(self):
        self.remote = self.remote_factory()
        self.local = LocalSubmissionStore(InMemoryKeyValueStore())
        self.store = SubmissionStore(self.remote, self.local, timeout_seconds=1.0)

        app = create_app()
        app.dependency_overrides[get_submission_store] = lambda: self.store
        self.client = TestClient(app)
        get_session_registry().reset()

    def login(self) -> dict:
        response = self.client.post(
            "/api/admin/login",
            json={"email": "admin@ncc.com", "password": "adminXncc"},
        )
        self.assertEqual(response.status_code, 200)
        return {"X-Admin-Session": response.json()["sessionId"]}


class SurveyApiTests(SurveyApiTestBase):
    def test_options(self):
        response = self.client.get("/api/survey/options")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertIn("CSE", payload["departments"])
        self.assertIn("Python", payload["programmingLanguages"])
        self.assertEqual(len(payload["workshopTopics"]), 8)

    def test_step_validation(self):
        response = self.client.post(
            "/api/survey/steps/1/validate", json={"name": "John", "email": "nope"}
        )
        self.assertEqual(response.status_code, 200)
        errors = response.json()["errors"]
        self.assertEqual(errors["email"], "Please enter a valid email")
        self.assertNotIn("name", errors)

        missing = self.client.post("/api/survey/steps/9/validate", json={})
        self.assertEqual(missing.status_code, 404)

    def test_create_on_remote(self):
        response = self.client.post("/api/survey/submissions", json=SUBMISSION)
        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertEqual(payload["outcome"], "remote")
        self.assertIsNone(payload["notice"])
        self.assertEqual(
            payload["submission"]["availabilityLabel"],
            "22 June 2025 (9 AM - 4 PM)",
        )
        self.assertEqual(len(self.remote.rows), 1)

    def test_invalid_submission_reports_all_errors(self):
        response = self.client.post(
            "/api/survey/submissions", json={"name": "John", "email": "bad"}
        )
        self.assertEqual(response.status_code, 422)
        errors = response.json()["detail"]["errors"]
        self.assertEqual(errors["email"], "Please enter a valid email")
        self.assertIn("workshopTopics", errors)
        self.assertEqual(self.remote.rows, {})

    def test_admin_routes_require_session(self):
        self.assertEqual(self.client.get("/api/admin/submissions").status_code, 401)
        self.assertEqual(
            self.client.get(
                "/api/admin/submissions", headers={"X-Admin-Session": "bogus"}
            ).status_code,
            401,
        )
        bad_login = self.client.post(
            "/api/admin/login", json={"email": "admin@ncc.com", "password": "x"}
        )
        self.assertEqual(bad_login.status_code, 401)

    def test_admin_list_edit_delete(self):
        created = self.client.post("/api/survey/submissions", json=SUBMISSION).json()
        submission_id = created["submission"]["id"]
        headers = self.login()

        listing = self.client.get("/api/admin/submissions", headers=headers).json()
        self.assertEqual(listing["dataSource"], "remote")
        self.assertEqual(listing["stats"]["total"], 1)
        self.assertEqual(listing["submissions"][0]["id"], submission_id)

        searched = self.client.get(
            "/api/admin/submissions", params={"search": "nobody"}, headers=headers
        ).json()
        self.assertEqual(searched["submissions"], [])
        self.assertEqual(searched["stats"]["filtered"], 0)

        edited = dict(SUBMISSION, name="Johnny Doe")
        response = self.client.put(
            f"/api/admin/submissions/{submission_id}", json=edited, headers=headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["name"], "Johnny Doe")

        response = self.client.delete(
            f"/api/admin/submissions/{submission_id}", headers=headers
        )
        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.remote.rows, {})

        response = self.client.delete(
            f"/api/admin/submissions/{submission_id}", headers=headers
        )
        self.assertEqual(response.status_code, 404)

    def test_export_csv(self):
        self.client.post("/api/survey/submissions", json=SUBMISSION)
        headers = self.login()
        self.client.get("/api/admin/submissions", headers=headers)

        response = self.client.get(
            "/api/admin/submissions/export.csv", headers=headers
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/csv"))
        self.assertIn(
            'filename="ncc-robotics-submissions-',
            response.headers["content-disposition"],
        )
        rows = list(csv.reader(io.StringIO(response.text)))
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0][0], "Name")
        self.assertIn('"I want ""hands-on"" robots"', response.text)

    def test_logout_closes_session(self):
        headers = self.login()
        self.assertEqual(
            self.client.post("/api/admin/logout", headers=headers).status_code, 204
        )
        self.assertEqual(
            self.client.get("/api/admin/submissions", headers=headers).status_code,
            401,
        )

    def test_backend_health(self):
        response = self.client.get("/api/health/backend")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["backend"], "memory")
        self.assertTrue(payload["reachable"])


class OfflineSurveyApiTests(SurveyApiTestBase):
    remote_factory = OfflineBackend

    def test_create_falls_back_with_notice(self):
        response = self.client.post("/api/survey/submissions", json=SUBMISSION)
        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertEqual(payload["outcome"], "local_fallback")
        self.assertTrue(payload["notice"])
        self.assertEqual(len(self.local.read_all()), 1)

    def test_admin_sees_local_submissions(self):
        self.client.post("/api/survey/submissions", json=SUBMISSION)
        headers = self.login()
        listing = self.client.get("/api/admin/submissions", headers=headers).json()
        self.assertEqual(listing["dataSource"], "local")
        self.assertIsNone(listing["error"])
        self.assertEqual(len(listing["submissions"]), 1)

        submission_id = listing["submissions"][0]["id"]
        response = self.client.put(
            f"/api/admin/submissions/{submission_id}",
            json=dict(SUBMISSION, department="EEE"),
            headers=headers,
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.local.read_all()[0]["department"], "EEE")

    def test_health_reports_unreachable(self):
        payload = self.client.get("/api/health/backend").json()
        self.assertFalse(payload["reachable"])
        self.assertIn("connection refused", payload["error"])


if __name__ == "__main__":
    unittest.main()
