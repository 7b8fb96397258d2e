"""Tests for moderator idea removal and the admin recompute trigger."""

from unittest.mock import patch

import pytest
from backend.app.models.bookmark import Bookmark
from backend.app.models.idea import Idea
from conftest import AuthHeader
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker


def _create_idea(client: TestClient, auth: AuthHeader) -> str:
    return client.post(
        "/api/v1/ideas", json={"title": "Street piano"}, headers=auth("author-1"),
    ).json()["id"]


class TestModerationDelete:
    def test_moderator_can_delete(
        self, client: TestClient, auth: AuthHeader, session_factory: sessionmaker[Session],
    ) -> None:
        idea_id = _create_idea(client, auth)
        client.post("/api/v1/bookmarks/toggle", json={"ideaId": idea_id}, headers=auth("u1"))

        resp = client.post(
            "/api/v1/moderation/ideas/delete",
            json={"ideaId": idea_id},
            headers=auth("mod-1", moderator=True),
        )

        assert resp.status_code == 200
        assert resp.json() == {"ok": True}
        with session_factory() as fresh:
            assert fresh.get(Idea, idea_id) is None
            assert fresh.scalar(select(func.count(Bookmark.id))) == 0

    def test_admin_implies_moderate(self, client: TestClient, auth: AuthHeader) -> None:
        idea_id = _create_idea(client, auth)
        resp = client.post(
            "/api/v1/moderation/ideas/delete",
            json={"ideaId": idea_id},
            headers=auth("admin-1", admin=True),
        )
        assert resp.status_code == 200

    def test_regular_user_forbidden(self, client: TestClient, auth: AuthHeader) -> None:
        idea_id = _create_idea(client, auth)
        resp = client.post(
            "/api/v1/moderation/ideas/delete",
            json={"ideaId": idea_id},
            headers=auth("author-1"),
        )
        assert resp.status_code == 403
        assert client.get(f"/api/v1/ideas/{idea_id}", headers=auth("a")).status_code == 200

    def test_unknown_idea_is_404(self, client: TestClient, auth: AuthHeader) -> None:
        resp = client.post(
            "/api/v1/moderation/ideas/delete",
            json={"ideaId": "missing"},
            headers=auth("mod-1", moderator=True),
        )
        assert resp.status_code == 404

    def test_missing_idea_id_is_400(self, client: TestClient, auth: AuthHeader) -> None:
        resp = client.post(
            "/api/v1/moderation/ideas/delete", json={}, headers=auth("mod-1", moderator=True),
        )
        assert resp.status_code == 400

    def test_vote_on_deleted_idea_is_404(self, client: TestClient, auth: AuthHeader) -> None:
        idea_id = _create_idea(client, auth)
        client.post(
            "/api/v1/moderation/ideas/delete",
            json={"ideaId": idea_id},
            headers=auth("mod-1", moderator=True),
        )
        resp = client.post("/api/v1/votes/toggle", json={"ideaId": idea_id}, headers=auth("u1"))
        assert resp.status_code == 404


class TestRecomputeTrigger:
    def test_admin_triggers_run(
        self, client: TestClient, auth: AuthHeader, session_factory: sessionmaker[Session],
    ) -> None:
        with patch("backend.app.api.routes.jobs.run_trending_recompute") as run:
            resp = client.post(
                "/api/v1/jobs/recompute-trending", headers=auth("admin-1", admin=True),
            )
        assert resp.status_code == 204
        run.assert_called_once_with(session_factory)

    def test_moderator_forbidden(self, client: TestClient, auth: AuthHeader) -> None:
        resp = client.post(
            "/api/v1/jobs/recompute-trending", headers=auth("mod-1", moderator=True),
        )
        assert resp.status_code == 403

    def test_anonymous_rejected(self, client: TestClient) -> None:
        assert client.post("/api/v1/jobs/recompute-trending").status_code == 401

    def test_failure_is_logged_not_raised(
        self, client: TestClient, auth: AuthHeader, caplog: pytest.LogCaptureFixture,
    ) -> None:
        with patch(
            "backend.app.api.routes.jobs.run_trending_recompute",
            side_effect=RuntimeError("boom"),
        ):
            resp = client.post(
                "/api/v1/jobs/recompute-trending", headers=auth("admin-1", admin=True),
            )
        assert resp.status_code == 204
        assert "repeating_job_error" in caplog.text
