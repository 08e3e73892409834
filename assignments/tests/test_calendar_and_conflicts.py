from datetime import date

from django.utils import timezone

from assignments.models import Assignment, Shift
from roster.models import Worker
from .base import AssignmentAPITestBase


class AssignmentCalendarTest(AssignmentAPITestBase):
    """Test the month calendar grouping."""

    calendar_url = "/api/assignments/calendar"

    def get_calendar(self, **params):
        return self.client.get(self.calendar_url, params)

    def test_leap_month_boundaries(self):
        """February 2024 covers the 1st through the 29th and nothing else."""
        self.make_assignment(day=date(2024, 1, 31))
        self.make_assignment(day=date(2024, 2, 1))
        self.make_assignment(day=date(2024, 2, 29))
        self.make_assignment(day=date(2024, 3, 1))

        response = self.get_calendar(year=2024, month=2)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["success"])
        self.assertEqual(set(data["calendar"]), {"2024-02-01", "2024-02-29"})
        self.assertEqual(data["summary"]["total_assignments"], 2)
        self.assertEqual(data["summary"]["days_with_assignments"], 2)
        self.assertEqual(data["summary"]["year"], 2024)
        self.assertEqual(data["summary"]["month"], 2)

    def test_grouping_and_shift_order(self):
        """Days are grouped by ISO key and shifts follow the working day."""
        self.make_assignment(worker=self.worker1, shift=Shift.NIGHT)
        self.make_assignment(worker=self.worker2, shift=Shift.MORNING)
        self.make_assignment(worker=self.worker3, shift=Shift.AFTERNOON)
        self.make_assignment(worker=self.worker1, day=date(2024, 2, 12))

        data = self.get_calendar(year=2024, month=2).json()

        self.assertEqual(list(data["calendar"]), ["2024-02-10", "2024-02-12"])
        shifts = [row["shift"] for row in data["calendar"]["2024-02-10"]]
        self.assertEqual(shifts, ["morning", "afternoon", "night"])
        self.assertEqual(len(data["calendar"]["2024-02-12"]), 1)

    def test_worker_and_line_filters(self):
        self.make_assignment(worker=self.worker1, line=self.line1)
        self.make_assignment(worker=self.worker2, line=self.line2)

        by_worker = self.get_calendar(year=2024, month=2, worker_id=self.worker2.id).json()
        by_line = self.get_calendar(year=2024, month=2, production_line_id=self.line1.id).json()

        self.assertEqual(by_worker["summary"]["total_assignments"], 1)
        self.assertEqual(by_worker["calendar"]["2024-02-10"][0]["worker"]["id"], self.worker2.id)
        self.assertEqual(by_line["calendar"]["2024-02-10"][0]["production_line"]["id"], self.line1.id)

    def test_workload_summary(self):
        """Even shift counts give a zero Gini coefficient, uneven ones a positive one."""
        self.make_assignment(worker=self.worker1, day=date(2024, 2, 1))
        self.make_assignment(worker=self.worker2, day=date(2024, 2, 1))

        even = self.get_calendar(year=2024, month=2).json()["summary"]
        self.assertEqual(even["workers_scheduled"], 2)
        self.assertEqual(even["workload_gini"], 0.0)

        for day in range(2, 6):
            self.make_assignment(worker=self.worker1, day=date(2024, 2, day))

        uneven = self.get_calendar(year=2024, month=2).json()["summary"]
        self.assertGreater(uneven["workload_gini"], 0.0)
        self.assertLessEqual(uneven["workload_gini"], 1.0)

    def test_empty_month(self):
        data = self.get_calendar(year=2025, month=6).json()

        self.assertEqual(data["calendar"], {})
        self.assertEqual(data["summary"]["total_assignments"], 0)
        self.assertEqual(data["summary"]["workload_gini"], 0.0)

    def test_invalid_month_or_year(self):
        for params in ({"year": 2024, "month": 13}, {"year": 2019, "month": 1}, {"month": 2}):
            response = self.get_calendar(**params)
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.json()["error"], "VALIDATION_ERROR")


class AssignmentConflictReportTest(AssignmentAPITestBase):
    """Test the audit report of double bookings."""

    conflicts_url = "/api/assignments/conflicts"

    def get_report(self, **params):
        return self.client.get(self.conflicts_url, params)

    def test_reports_only_double_bookings(self):
        """Slots held twice are listed; single bookings never appear."""
        first = self.make_assignment(worker=self.worker1, line=self.line1, position="Welder")
        second = self.make_assignment(worker=self.worker1, line=self.line2, position="Packer")
        self.make_assignment(worker=self.worker1, shift=Shift.NIGHT)
        self.make_assignment(worker=self.worker2)

        response = self.get_report(start_date="2024-02-01", end_date="2024-02-29")

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["summary"]["total_conflicts"], 1)
        self.assertEqual(data["summary"]["date_range"], {"start_date": "2024-02-01", "end_date": "2024-02-29"})

        conflict = data["conflicts"][0]
        self.assertEqual(conflict["worker_id"], self.worker1.id)
        self.assertEqual(conflict["date"], "2024-02-10")
        self.assertEqual(conflict["shift"], "morning")
        self.assertEqual(conflict["worker"], {
            "id": self.worker1.id, "name": "Worker 1", "cin": "10000001", "role": "operator",
        })
        self.assertEqual(conflict["assignments"], [
            {"assignment_id": first.id, "production_line_id": self.line1.id,
             "production_line_name": "Line A", "position": "Welder"},
            {"assignment_id": second.id, "production_line_id": self.line2.id,
             "production_line_name": "Line B", "position": "Packer"},
        ])

    def test_range_is_inclusive_and_bounded(self):
        for day in (date(2024, 2, 1), date(2024, 2, 29), date(2024, 3, 1)):
            self.make_assignment(worker=self.worker2, day=day)
            self.make_assignment(worker=self.worker2, day=day, line=self.line2)

        data = self.get_report(start_date="2024-02-01", end_date="2024-02-29").json()

        self.assertEqual([c["date"] for c in data["conflicts"]], ["2024-02-01", "2024-02-29"])

    def test_report_ordering(self):
        self.make_assignment(worker=self.worker1, shift=Shift.NIGHT)
        self.make_assignment(worker=self.worker1, shift=Shift.NIGHT, line=self.line2)
        self.make_assignment(worker=self.worker2, shift=Shift.MORNING)
        self.make_assignment(worker=self.worker2, shift=Shift.MORNING, line=self.line2)

        data = self.get_report(start_date="2024-02-01", end_date="2024-02-29").json()

        self.assertEqual([c["shift"] for c in data["conflicts"]], ["morning", "night"])

    def test_defaults_to_current_month(self):
        today = timezone.localdate()
        self.make_assignment(day=today)
        self.make_assignment(day=today, line=self.line2)
        self.make_assignment(day=date(2021, 1, 5))
        self.make_assignment(day=date(2021, 1, 5), line=self.line2)

        data = self.get_report().json()

        self.assertEqual(data["summary"]["total_conflicts"], 1)
        self.assertEqual(data["conflicts"][0]["date"], today.isoformat())
        self.assertEqual(data["summary"]["date_range"]["start_date"], today.replace(day=1).isoformat())

    def test_no_conflicts(self):
        self.make_assignment()

        data = self.get_report(start_date="2024-02-01", end_date="2024-02-29").json()

        self.assertEqual(data["conflicts"], [])
        self.assertEqual(data["summary"]["total_conflicts"], 0)

    def test_invalid_dates(self):
        bad_start = self.get_report(start_date="31/02/2024")
        bad_end = self.get_report(end_date="tomorrow")

        self.assertEqual(bad_start.status_code, 400)
        self.assertEqual(bad_start.json()["error"], "INVALID_START_DATE")
        self.assertEqual(bad_end.status_code, 400)
        self.assertEqual(bad_end.json()["error"], "INVALID_END_DATE")

    def test_many_conflicting_slots(self):
        """Hundreds of double-booked slots come back in one report."""
        workers = Worker.objects.bulk_create(
            [Worker(name=f"Bulk {n}", cin=f"{20000000 + n}") for n in range(450)]
        )
        Assignment.objects.bulk_create([
            Assignment(worker=worker, production_line=line, position="Op",
                       date=date(2024, 3, 5), shift=Shift.MORNING)
            for worker in workers
            for line in (self.line1, self.line2)
        ])

        response = self.get_report(start_date="2024-03-01", end_date="2024-03-31")

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["summary"]["total_conflicts"], 450)
        self.assertTrue(all(len(c["assignments"]) == 2 for c in data["conflicts"]))
        self.assertEqual(
            [c["worker_id"] for c in data["conflicts"]],
            sorted(worker.id for worker in workers),
        )
