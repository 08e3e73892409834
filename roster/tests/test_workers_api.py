from datetime import date

from django.conf import settings
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.test.client import Client

from assignments.models import Assignment, Shift
from roster.models import ProductionLine, Worker


class WorkerAPITestBase(TestCase):
    """Base test class with common setup and helper methods."""

    url = "/api/workers/"

    def setUp(self):
        self.client = Client()
        self.worker = Worker.objects.create(
            name="Amal", cin="11111111", email="amal@example.com", phone="0611111111", role="operator"
        )
        self.other = Worker.objects.create(name="Badr", cin="22222222")
        self.line = ProductionLine.objects.create(name="Line A")

    def post_json(self, data):
        return self.client.post(self.url, data=data, content_type="application/json")

    def put_json(self, worker_id, data):
        return self.client.put(f"{self.url}{worker_id}", data=data, content_type="application/json")


class WorkerCreateTest(WorkerAPITestBase):

    def test_create_worker(self):
        response = self.post_json({
            "name": " Chaima ", "cin": "33333333", "email": " Chaima@Example.COM ", "role": "welder",
        })

        self.assertEqual(response.status_code, 201)
        worker = response.json()["worker"]
        self.assertEqual(worker["name"], "Chaima")
        self.assertEqual(worker["email"], "chaima@example.com")
        self.assertIsNone(worker["phone"])
        self.assertTrue(Worker.objects.filter(cin="33333333").exists())

    def test_duplicate_unique_fields(self):
        """CIN, email and phone each map to their own conflict code."""
        cases = [
            ({"cin": "11111111"}, "CIN_EXISTS"),
            ({"email": "AMAL@example.com"}, "EMAIL_EXISTS"),
            ({"phone": "0611111111"}, "PHONE_EXISTS"),
        ]
        for overrides, code in cases:
            body = {"name": "Dup", "cin": "44444444", **overrides}
            response = self.post_json(body)
            self.assertEqual(response.status_code, 409, code)
            self.assertEqual(response.json()["error"], code)

    def test_invalid_payload(self):
        for body in (
            {"name": "Bad", "cin": "1234"},
            {"name": "Bad", "cin": "abcdefgh"},
            {"name": "Bad", "cin": "55555555", "email": "not-an-email"},
            {"name": "", "cin": "55555555"},
        ):
            response = self.post_json(body)
            self.assertEqual(response.status_code, 400, body)
            self.assertEqual(response.json()["error"], "VALIDATION_ERROR")


class WorkerReadTest(WorkerAPITestBase):

    def test_list_workers(self):
        Assignment.objects.create(
            worker=self.worker, production_line=self.line, position="Op",
            date=date(2024, 2, 1), shift=Shift.MORNING,
        )

        data = self.client.get(self.url).json()

        self.assertTrue(data["success"])
        self.assertEqual(data["pagination"]["total_count"], 2)
        counts = {row["cin"]: row["assignment_count"] for row in data["workers"]}
        self.assertEqual(counts, {"11111111": 1, "22222222": 0})

    def test_list_pagination(self):
        data = self.client.get(self.url, {"page": 2, "limit": 1}).json()

        self.assertEqual(len(data["workers"]), 1)
        self.assertEqual(data["pagination"]["total_pages"], 2)
        self.assertFalse(data["pagination"]["has_next"])
        self.assertTrue(data["pagination"]["has_prev"])

    def test_get_worker_with_recent_assignments(self):
        for day in (1, 3, 2):
            Assignment.objects.create(
                worker=self.worker, production_line=self.line, position="Op",
                date=date(2024, 2, day), shift=Shift.MORNING,
            )

        response = self.client.get(f"{self.url}{self.worker.id}")

        self.assertEqual(response.status_code, 200)
        worker = response.json()["worker"]
        self.assertEqual(worker["assignment_count"], 3)
        self.assertEqual(
            [row["date"] for row in worker["recent_assignments"]],
            ["2024-02-03", "2024-02-02", "2024-02-01"],
        )
        self.assertEqual(worker["recent_assignments"][0]["production_line"]["name"], "Line A")

    def test_get_missing_or_invalid(self):
        missing = self.client.get(f"{self.url}999999")
        invalid = self.client.get(f"{self.url}abc")

        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["error"], "WORKER_NOT_FOUND")
        self.assertEqual(invalid.status_code, 400)
        self.assertEqual(invalid.json()["error"], "INVALID_ID")


class WorkerUpdateDeleteTest(WorkerAPITestBase):

    def test_partial_update(self):
        response = self.put_json(self.worker.id, {"role": "team lead"})

        self.assertEqual(response.status_code, 200)
        self.worker.refresh_from_db()
        self.assertEqual(self.worker.role, "team lead")
        self.assertEqual(self.worker.email, "amal@example.com")

    def test_empty_values_clear_optional_fields(self):
        response = self.put_json(self.worker.id, {"email": "", "phone": ""})

        self.assertEqual(response.status_code, 200)
        self.worker.refresh_from_db()
        self.assertIsNone(self.worker.email)
        self.assertIsNone(self.worker.phone)

    def test_keeping_own_values_is_not_a_duplicate(self):
        response = self.put_json(self.worker.id, {"cin": "11111111", "email": "amal@example.com"})

        self.assertEqual(response.status_code, 200)

    def test_taking_another_workers_cin(self):
        response = self.put_json(self.other.id, {"cin": "11111111"})

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"], "CIN_EXISTS")

    def test_update_missing_worker(self):
        response = self.put_json(999999, {"name": "Ghost"})

        self.assertEqual(response.status_code, 404)

    def test_delete_worker(self):
        response = self.client.delete(f"{self.url}{self.other.id}")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(Worker.objects.filter(pk=self.other.id).exists())

    def test_delete_missing_worker(self):
        response = self.client.delete(f"{self.url}999999")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "WORKER_NOT_FOUND")

    def test_delete_worker_with_assignments_is_blocked(self):
        Assignment.objects.create(
            worker=self.worker, production_line=self.line, position="Op",
            date=date(2024, 2, 1), shift=Shift.MORNING,
        )

        response = self.client.delete(f"{self.url}{self.worker.id}")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "FOREIGN_KEY_VIOLATION")
        self.assertTrue(Worker.objects.filter(pk=self.worker.id).exists())


class WorkerImportTest(WorkerAPITestBase):
    """Test CSV batch import."""

    import_url = "/api/workers/import"

    def upload(self, content: bytes, content_type="text/csv", filename="workers.csv", field="file"):
        upload = SimpleUploadedFile(filename, content, content_type=content_type)
        return self.client.post(self.import_url, {field: upload})

    def test_import_reports_each_row(self):
        content = (
            "name,cin,email,phone,role\n"
            "Dina,33333333,dina@example.com,,operator\n"
            "Duplicate,11111111,,,\n"
            "No Cin,,,,\n"
            "Short Cin,123,,,\n"
            "Elyes,44444444,,0644444444,\n"
        ).encode()

        response = self.upload(content)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["message"], "Import completed. 2 workers imported, 3 errors")

        results = data["results"]
        self.assertEqual(results["total"], 5)
        self.assertEqual([row["row"] for row in results["success"]], [2, 6])
        self.assertEqual([row["row"] for row in results["errors"]], [3, 4, 5])
        self.assertEqual(results["errors"][0]["error"], "This CIN is already in use")
        self.assertEqual(results["errors"][1]["error"], "Missing required fields (name, cin)")
        self.assertEqual(results["success"][0]["worker"]["email"], "dina@example.com")
        self.assertIsNone(results["success"][0]["worker"]["phone"])
        self.assertTrue(Worker.objects.filter(cin="44444444", phone="0644444444").exists())

    def test_missing_columns(self):
        response = self.upload(b"name,email\nDina,dina@example.com\n")

        self.assertEqual(response.status_code, 400)
        data = response.json()
        self.assertEqual(data["error"], "MISSING_COLUMNS")
        self.assertEqual(data["message"], "Missing required columns: cin")

    def test_empty_file(self):
        response = self.upload(b"name,cin\n")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "EMPTY_CSV")

    def test_wrong_content_type(self):
        response = self.upload(
            b"name,cin\nDina,33333333\n", content_type="application/json", filename="workers.json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "INVALID_FILE_TYPE")

    def test_undecodable_file(self):
        response = self.upload(b"name,cin\n\xff\xfe\xfa,33333333\n")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "INVALID_CSV")

    def test_excel_content_type_is_accepted(self):
        """Windows browsers send .csv files as application/vnd.ms-excel."""
        response = self.upload(b"name,cin\nDina,33333333\n", content_type="application/vnd.ms-excel")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(Worker.objects.filter(cin="33333333").exists())

    def test_csv_filename_is_accepted_whatever_the_content_type(self):
        response = self.upload(
            b"name,cin\nDina,33333333\n", content_type="application/octet-stream", filename="export.CSV",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["results"]["total"], 1)

    def test_csv_form_field(self):
        response = self.upload(b"name,cin\nDina,33333333\n", field="csv")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(Worker.objects.filter(cin="33333333").exists())

    def test_missing_upload(self):
        response = self.client.post(self.import_url, {})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "NO_FILE")

    @override_settings(WORKER_IMPORT_MAX_BYTES=10)
    def test_oversized_file(self):
        response = self.upload(b"name,cin\nDina,33333333\n")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "FILE_TOO_LARGE")

    def test_size_limit_is_fifty_megabytes(self):
        self.assertEqual(settings.WORKER_IMPORT_MAX_BYTES, 50 * 1024 * 1024)
