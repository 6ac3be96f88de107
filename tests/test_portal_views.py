import unittest
from datetime import date, timedelta

from fakes import FakeBackend, login_staff, make_app
from staffdesk.services.api_client import BackendUnavailable


class PortalViewTests(unittest.TestCase):
    def setUp(self):
        self.backend = FakeBackend({
            ("GET", "/api/auth/attendance/today"): {"attendance": {"status": "present"}},
            ("GET", "/api/alerts/my-alerts"): {"alerts": [{"_id": "al1", "title": "Fire drill", "isRead": False}],
                                               "unreadCount": 1},
            ("GET", "/api/tasks/today"): {"tasks": [{"_id": "t1", "title": "Mop hall", "status": "pending"}]},
        })
        self.app = make_app(self.backend)
        self.client = self.app.test_client()
        login_staff(self.client, self.backend)

    def test_home(self):
        resp = self.client.get("/portal/")
        self.assertEqual(resp.status_code, 200)
        body = resp.data.decode()
        self.assertIn("Hello, maria", body)
        self.assertIn("1 unread alert(s)", body)

    def test_home_survives_backend_hiccup(self):
        self.backend.routes[("GET", "/api/auth/attendance/today")] = BackendUnavailable("down")
        resp = self.client.get("/portal/")
        self.assertEqual(resp.status_code, 200)
        self.assertIn(b"No attendance recorded today", resp.data)

    def test_task_views(self):
        resp = self.client.get("/portal/tasks")
        self.assertIn(b"Mop hall", resp.data)
        for view in ("all", "verification", "stats", "bogus"):
            self.assertEqual(self.client.get(f"/portal/tasks?view={view}").status_code, 200, view)

    def test_status_update(self):
        self.client.post("/portal/tasks/t1/status", data={"status": "in-progress", "view": "today"})
        self.assertEqual(self.backend.last_call("PUT", "/api/tasks/update-status/t1")["json"],
                         {"status": "in-progress", "completionNotes": ""})

    def test_verification_submission_is_validated(self):
        resp = self.client.post("/portal/tasks/t1/verification", data={"score": "7", "result": "pass"},
                                follow_redirects=True)
        self.assertIn(b"Score must be between 1 and 5", resp.data)
        self.assertIsNone(self.backend.last_call("PUT", "/api/tasks/submit-verification/t1"))

        self.client.post("/portal/tasks/t1/verification", data={"score": "5", "result": "pass"})
        self.assertEqual(self.backend.last_call("PUT", "/api/tasks/submit-verification/t1")["json"]["score"], 5)

    def test_leave_must_be_in_the_future(self):
        resp = self.client.post("/portal/attendance/leave", data={
            "reason": "trip", "leaveType": "vacation", "date": date.today().isoformat()})
        self.assertEqual(resp.status_code, 302)
        self.assertTrue(resp.headers["Location"].endswith("/portal/attendance"))
        resp = self.client.get(resp.headers["Location"])
        self.assertIn(b"future dates", resp.data)
        self.assertIsNone(self.backend.last_call("POST", "/api/auth/attendance/apply-leave"))

        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        self.client.post("/portal/attendance/leave", data={"reason": "trip", "leaveType": "vacation",
                                                           "date": tomorrow})
        self.assertEqual(self.backend.last_call("POST", "/api/auth/attendance/apply-leave")["json"]["date"],
                         tomorrow)

    def test_check_in_and_absence(self):
        self.client.post("/portal/attendance/check-in")
        self.assertIsNotNone(self.backend.last_call("POST", "/api/auth/attendance/check-in"))
        self.client.post("/portal/attendance/absent", data={"reason": ""})
        self.assertIsNone(self.backend.last_call("POST", "/api/auth/attendance/mark-absent"))

    def test_attendance_page(self):
        self.backend.routes[("GET", "/api/auth/attendance/history")] = {
            "attendance": [{"date": "2030-01-02", "status": "late"}],
            "pagination": {"current": 1, "total": 2, "hasNext": True, "hasPrev": False},
        }
        resp = self.client.get("/portal/attendance")
        self.assertEqual(resp.status_code, 200)
        self.assertIn(b"Page 1 of 2", resp.data)
        self.assertIn(b"Jan 02, 2030", resp.data)

    def test_swap_request_requires_listed_partner(self):
        self.backend.routes[("GET", "/api/shifts/available-partners/sch1")] = {"availablePartners": [
            {"_id": "sch9", "userId": {"_id": "u2", "username": "joao"}}]}
        self.client.post("/portal/shift-swap", data={"requesterScheduleId": "sch1", "targetScheduleId": "nope"})
        self.assertIsNone(self.backend.last_call("POST", "/api/shifts/request-swap"))

        self.client.post("/portal/shift-swap", data={"requesterScheduleId": "sch1", "targetScheduleId": "sch9",
                                                     "reason": "doctor"})
        self.assertEqual(self.backend.last_call("POST", "/api/shifts/request-swap")["json"]["targetUserId"], "u2")

    def test_shift_swap_page(self):
        resp = self.client.get("/portal/shift-swap?schedule=sch1")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("/api/shifts/available-partners/sch1", self.backend.paths("GET"))

    def test_alerts(self):
        resp = self.client.get("/portal/alerts?filter=urgent")
        self.assertIn(b"Fire drill", resp.data)
        self.assertEqual(self.backend.last_call("GET", "/api/alerts/my-alerts")["params"], {"priority": "urgent"})
        self.client.post("/portal/alerts/al1/read")
        self.assertIsNotNone(self.backend.last_call("PUT", "/api/alerts/mark-read/al1"))
        self.client.post("/portal/alerts/al1/delete")
        self.assertIsNotNone(self.backend.last_call("DELETE", "/api/alerts/delete/al1"))


if __name__ == "__main__":
    unittest.main()
