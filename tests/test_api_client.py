import unittest

import requests

from fakes import FakeResponse, FakeSession
from staffdesk.services.api_client import (
    BackendAuthError,
    BackendClient,
    BackendRequestError,
    BackendUnavailable,
)


class BackendClientTests(unittest.TestCase):
    def _client(self, *outcomes, **kw):
        self.sleeps = []
        self.session = FakeSession(*outcomes)
        return BackendClient("http://backend.test/", session=self.session, sleep=self.sleeps.append, **kw)

    def test_timeouts_back_off_two_seconds_per_power_of_two(self):
        client = self._client(
            requests.Timeout("slow"),
            requests.ConnectionError("refused"),
            FakeResponse(200, {"ok": True}),
        )
        self.assertEqual(client.get("/api/ping"), {"ok": True})
        self.assertEqual(self.sleeps, [4, 8])
        self.assertEqual(len(self.session.calls), 3)

    def test_server_errors_back_off_one_second_per_power_of_two(self):
        client = self._client(
            FakeResponse(502, {"message": "bad gateway"}),
            FakeResponse(503),
            FakeResponse(200, {"ok": True}),
        )
        self.assertEqual(client.get("/api/ping"), {"ok": True})
        self.assertEqual(self.sleeps, [2, 4])

    def test_gives_up_after_last_attempt_without_sleeping(self):
        client = self._client(requests.Timeout(), requests.Timeout(), requests.Timeout())
        with self.assertRaises(BackendUnavailable):
            client.get("/api/ping")
        self.assertEqual(self.sleeps, [4, 8])

    def test_persistent_5xx_keeps_status(self):
        client = self._client(FakeResponse(500), FakeResponse(500), FakeResponse(500, {"error": "boom"}))
        with self.assertRaises(BackendUnavailable) as ctx:
            client.get("/api/ping")
        self.assertEqual(ctx.exception.status, 500)
        self.assertEqual(ctx.exception.message, "boom")

    def test_client_errors_fail_fast(self):
        client = self._client(FakeResponse(404, {"message": "Task not found"}))
        with self.assertRaises(BackendRequestError) as ctx:
            client.delete("/api/tasks/delete/t1", token="tok")
        self.assertEqual(ctx.exception.message, "Task not found")
        self.assertEqual(ctx.exception.status, 404)
        self.assertEqual(len(self.session.calls), 1)
        self.assertEqual(self.sleeps, [])

    def test_unauthorized_is_auth_error(self):
        for status in (401, 403):
            client = self._client(FakeResponse(status, {"message": "Token expired"}))
            with self.assertRaises(BackendAuthError):
                client.get("/api/admin/profile", token="tok")

    def test_success_false_body_is_request_error(self):
        client = self._client(FakeResponse(200, {"success": False, "message": "Already checked in"}))
        with self.assertRaises(BackendRequestError) as ctx:
            client.post("/api/auth/attendance/check-in", token="tok")
        self.assertEqual(ctx.exception.message, "Already checked in")

    def test_require_token_without_token_never_calls_backend(self):
        client = self._client()
        with self.assertRaises(BackendAuthError):
            client.get("/api/tasks/today", require_token=True)
        self.assertEqual(self.session.calls, [])

    def test_sends_bearer_token_and_json_body(self):
        client = self._client(FakeResponse(200, {"message": "ok"}))
        client.post("/api/tasks/create", token="abc", json={"title": "Mop"}, params={"x": 1})
        method, url, kwargs = self.session.calls[0]
        self.assertEqual(method, "POST")
        self.assertEqual(url, "http://backend.test/api/tasks/create")
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer abc")
        self.assertEqual(kwargs["headers"]["Content-Type"], "application/json")
        self.assertEqual(kwargs["json"], {"title": "Mop"})
        self.assertEqual(kwargs["params"], {"x": 1})
        self.assertEqual(kwargs["timeout"], 45)

    def test_no_authorization_header_without_token(self):
        client = self._client(FakeResponse(200, {}))
        client.post("/api/auth/forgot-password", json={"email": "a@b.co"})
        self.assertNotIn("Authorization", self.session.calls[0][2]["headers"])

    def test_single_attempt_override(self):
        client = self._client(FakeResponse(503))
        with self.assertRaises(BackendUnavailable):
            client.post("/api/shifts/request-swap", token="tok", retries=1, timeout=30)
        self.assertEqual(self.sleeps, [])
        self.assertEqual(self.session.calls[0][2]["timeout"], 30)

    def test_max_retries_from_constructor(self):
        client = self._client(requests.Timeout(), requests.Timeout(), max_retries=2)
        with self.assertRaises(BackendUnavailable):
            client.get("/")
        self.assertEqual(self.sleeps, [4])

    def test_empty_and_non_object_bodies(self):
        client = self._client(FakeResponse(204), FakeResponse(200, [1, 2]), FakeResponse(200, raw=b"<html>"))
        self.assertEqual(client.delete("/api/alerts/delete/1", token="t"), {})
        self.assertEqual(client.get("/x"), {"data": [1, 2]})
        self.assertEqual(client.get("/y"), {})

    def test_backoff_delay(self):
        self.assertEqual(BackendClient.backoff_delay(1, timed_out=True), 4)
        self.assertEqual(BackendClient.backoff_delay(3, timed_out=True), 16)
        self.assertEqual(BackendClient.backoff_delay(2, timed_out=False), 4)


if __name__ == "__main__":
    unittest.main()
