"""Tests for the admin token middleware."""
from __future__ import annotations

import os
import unittest
from unittest import mock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from leaderboard_node.middleware.auth import ADMIN_TOKEN_HEADER, AdminTokenMiddleware, configure_auth


def _make_app(admin_token: str | None = None) -> FastAPI:
    app = FastAPI()
    app.add_middleware(AdminTokenMiddleware, admin_token=admin_token, admin_prefixes=("/api/admin",))

    @app.get("/api/leaderboard")
    def leaderboard():
        return [{"id": "a"}]

    @app.post("/api/prizes")
    def set_prizes():
        return {"ok": True}

    @app.get("/api/admin/ping")
    def ping():
        return {"ok": True}

    return app


class TestNoAdminToken(unittest.TestCase):
    """Without a configured token the admin surface is closed."""

    def setUp(self):
        self.client = TestClient(_make_app(admin_token=None))

    def test_public_reads_open(self):
        self.assertEqual(self.client.get("/api/leaderboard").status_code, 200)

    def test_mutations_hidden(self):
        resp = self.client.post("/api/prizes", headers={ADMIN_TOKEN_HEADER: "anything"})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"error": "not_found"})

    def test_admin_reads_hidden(self):
        self.assertEqual(self.client.get("/api/admin/ping").status_code, 404)


class TestWithAdminToken(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(_make_app(admin_token="secret"))

    def test_public_reads_need_no_token(self):
        self.assertEqual(self.client.get("/api/leaderboard").status_code, 200)

    def test_missing_token_rejected(self):
        self.assertEqual(self.client.post("/api/prizes").status_code, 404)
        self.assertEqual(self.client.get("/api/admin/ping").status_code, 404)

    def test_wrong_token_rejected(self):
        resp = self.client.post("/api/prizes", headers={ADMIN_TOKEN_HEADER: "nope"})
        self.assertEqual(resp.status_code, 404)

    def test_correct_token_accepted(self):
        headers = {ADMIN_TOKEN_HEADER: "secret"}
        self.assertEqual(self.client.post("/api/prizes", headers=headers).status_code, 200)
        self.assertEqual(self.client.get("/api/admin/ping", headers=headers).json(), {"ok": True})


class TestConfigureAuth(unittest.TestCase):
    def test_env_token_and_prefixes(self):
        env = {"ADMIN_TOKEN": "from-env", "ADMIN_PREFIXES": "/ops, /api/admin"}
        with mock.patch.dict(os.environ, env):
            app = FastAPI()
            configure_auth(app)

            @app.get("/ops/status")
            def status():
                return {"ok": True}

            client = TestClient(app)
            self.assertEqual(client.get("/ops/status").status_code, 404)
            self.assertEqual(client.get("/ops/status", headers={ADMIN_TOKEN_HEADER: "from-env"}).status_code, 200)


if __name__ == "__main__":
    unittest.main()
