import unittest
from datetime import date

from fakes import FakeBackend
from staffdesk.services import attendance
from staffdesk.services.api_client import BackendAuthError, BackendUnavailable

SUMMARY_PATH = "/api/auth/attendance/admin/today-summary"


class LeaveValidationTests(unittest.TestCase):
    TODAY = date(2030, 5, 10)

    def test_future_date_is_accepted(self):
        self.assertEqual(attendance.validate_leave("dentist", "sick", "2030-05-11", today=self.TODAY), {})

    def test_today_and_past_are_rejected(self):
        for day in ("2030-05-10", "2030-05-01"):
            errors = attendance.validate_leave("dentist", "sick", day, today=self.TODAY)
            self.assertIn("future dates", errors["date"])

    def test_missing_fields(self):
        errors = attendance.validate_leave("  ", "holiday", "", today=self.TODAY)
        self.assertEqual(set(errors), {"reason", "leaveType", "date"})
        self.assertIn("date", attendance.validate_leave("x", "sick", "10/05/2030", today=self.TODAY))


class TodaySummaryTests(unittest.TestCase):
    def test_open_endpoint_first(self):
        backend = FakeBackend({("GET", SUMMARY_PATH): {"summary": {"present": 4}}})
        self.assertEqual(attendance.today_summary(backend, "tok"), {"present": 4})
        self.assertIsNone(backend.calls[0][2].get("token"))
        self.assertEqual(len(backend.calls), 1)

    def test_falls_back_to_token_then_zeros(self):
        def summary(**kw):
            if not kw.get("token"):
                raise BackendAuthError("Unauthorized", 401)
            return {"summary": {"present": 2}}

        backend = FakeBackend({("GET", SUMMARY_PATH): summary})
        self.assertEqual(attendance.today_summary(backend, "tok"), {"present": 2})

        down = FakeBackend({("GET", SUMMARY_PATH): BackendUnavailable("down")})
        self.assertEqual(attendance.today_summary(down, "tok"), attendance.EMPTY_SUMMARY)


class PendingLeavesTests(unittest.TestCase):
    def test_joins_user_details_with_single_lookup(self):
        backend = FakeBackend({
            ("GET", "/api/auth/attendance/admin/pending-leaves"): {"pendingLeaves": [
                {"_id": "l1", "userId": "u1"},
                {"_id": "l2", "userId": "u2"},
                {"_id": "l3", "userId": "u9", "username": "ghost"},
            ]},
            ("GET", "/api/auth/users"): {"users": [
                {"id": "u1", "username": "maria"},
                {"_id": "u2", "username": "joao"},
            ]},
        })
        leaves = attendance.pending_leaves(backend, "tok")
        self.assertEqual([l["userDetails"]["username"] for l in leaves], ["maria", "joao", "ghost"])
        self.assertEqual(backend.paths().count("/api/auth/users"), 1)

    def test_user_lookup_failure_is_tolerated(self):
        backend = FakeBackend({
            ("GET", "/api/auth/attendance/admin/pending-leaves"): {"pendingLeaves": [{"userId": "u1"}]},
            ("GET", "/api/auth/users"): BackendUnavailable("down"),
        })
        leaves = attendance.pending_leaves(backend, "tok")
        self.assertEqual(len(leaves), 1)
        self.assertIn("userDetails", leaves[0])

    def test_no_leaves_skips_user_lookup(self):
        backend = FakeBackend()
        self.assertEqual(attendance.pending_leaves(backend, "tok"), [])
        self.assertNotIn("/api/auth/users", backend.paths())


class StaffAttendanceTests(unittest.TestCase):
    def test_decide_leave_body(self):
        backend = FakeBackend()
        attendance.decide_leave(backend, "tok", "a1", False, "  short staffed ")
        self.assertEqual(backend.last_call("POST", "/api/auth/attendance/admin/approve-leave")["json"],
                         {"attendanceId": "a1", "isApproved": False, "approvalNotes": "short staffed"})

    def test_apply_leave_single_attempt(self):
        backend = FakeBackend()
        attendance.apply_leave(backend, "tok", "trip", "vacation", "2030-06-01")
        call = backend.last_call("POST", "/api/auth/attendance/apply-leave")
        self.assertEqual(call["retries"], 1)
        self.assertEqual(call["timeout"], attendance.APPLY_LEAVE_TIMEOUT)

    def test_history_pagination(self):
        backend = FakeBackend({("GET", "/api/auth/attendance/history"): {
            "attendance": [{"status": "present"}],
            "pagination": {"current": 2, "total": 3, "hasNext": True, "hasPrev": True}}})
        history = attendance.my_history(backend, "tok", 2)
        self.assertEqual(history["pagination"]["total"], 3)
        self.assertEqual(backend.last_call("GET", "/api/auth/attendance/history")["params"],
                         {"page": 2, "limit": attendance.HISTORY_PAGE_SIZE})

    def test_history_default_pagination(self):
        history = attendance.my_history(FakeBackend(), "tok", 0)
        self.assertEqual(history["pagination"], {"current": 1, "total": 1, "hasNext": False, "hasPrev": False})

    def test_check_in_sends_location(self):
        backend = FakeBackend()
        attendance.check_in(backend, "tok")
        self.assertEqual(backend.last_call("POST", "/api/auth/attendance/check-in")["json"], {"location": "Office"})


if __name__ == "__main__":
    unittest.main()
