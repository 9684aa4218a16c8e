"""
API tests for homework, graph and illustration routes.
"""
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from api.main import app
from api.routes import homework, illustrations

SECRET = "internal-test-secret"


@pytest.fixture
def pipeline():
    fake = Mock()
    fake.run.return_value = Mock(success=True, question_count=2, error=None)
    return fake


@pytest.fixture
def generator():
    return Mock()


@pytest.fixture
def client(monkeypatch, pipeline, generator):
    monkeypatch.setattr(homework, "INTERNAL_API_SECRET", SECRET)
    app.dependency_overrides[homework.get_pipeline] = lambda: pipeline
    app.dependency_overrides[illustrations.get_illustration_generator] = lambda: generator
    yield TestClient(app)
    app.dependency_overrides.clear()
    homework.jobs.clear()


def process_body():
    return {
        "homework_id": "hw1",
        "user_id": "user1",
        "generate_illustrations": True,
        "questions": [
            {"order_index": 0, "question_text": "Compute 2 + 2"},
            {
                "order_index": 1,
                "question_text": "Find the speed",
                "is_sub_question": True,
                "parent_context": "A car accelerates from rest",
                "sub_question_label": "a",
                "original_language": "he",
            },
        ],
    }


class TestHomeworkRoutes:
    """Test homework processing endpoints."""

    def test_process_requires_secret(self, client, pipeline):
        response = client.post("/api/v1/homework/process", json=process_body())

        assert response.status_code == 401
        pipeline.run.assert_not_called()

    def test_process_rejects_wrong_secret(self, client):
        response = client.post(
            "/api/v1/homework/process", json=process_body(), headers={"x-internal-secret": "nope"}
        )
        assert response.status_code == 401

    def test_process_runs_pipeline_in_background(self, client, pipeline):
        response = client.post(
            "/api/v1/homework/process", json=process_body(), headers={"x-internal-secret": SECRET}
        )

        assert response.status_code == 202
        body = response.json()
        assert body["status"] == "queued"
        assert body["question_count"] == 2

        kwargs = pipeline.run.call_args.kwargs
        assert kwargs["homework_id"] == "hw1"
        assert kwargs["user_id"] == "user1"
        assert kwargs["generate_illustrations"] is True
        assert kwargs["questions"][1].is_sub_question is True
        assert kwargs["questions"][1].original_language == "he"

        status = client.get(f"/api/v1/homework/jobs/{body['job_id']}").json()
        assert status["status"] == "completed"
        assert status["question_count"] == 2

    def test_crashed_job_marked_failed(self, client, pipeline):
        pipeline.run.side_effect = RuntimeError("unexpected")

        body = client.post(
            "/api/v1/homework/process", json=process_body(), headers={"x-internal-secret": SECRET}
        ).json()

        status = client.get(f"/api/v1/homework/jobs/{body['job_id']}").json()
        assert status["status"] == "failed"
        assert status["error"] == "unexpected"

    def test_invalid_question_rejected(self, client):
        body = process_body()
        body["questions"][0]["question_text"] = ""

        response = client.post(
            "/api/v1/homework/process", json=body, headers={"x-internal-secret": SECRET}
        )
        assert response.status_code == 422

    def test_duplicate_order_index_rejected(self, client, pipeline):
        body = process_body()
        body["questions"][1]["order_index"] = 0

        response = client.post(
            "/api/v1/homework/process", json=body, headers={"x-internal-secret": SECRET}
        )

        assert response.status_code == 422
        assert "Duplicate order_index 0" in response.text
        pipeline.run.assert_not_called()

    def test_unknown_job(self, client):
        assert client.get("/api/v1/homework/jobs/job_missing").status_code == 404


class TestGraphRoutes:
    """Test graph sampling."""

    def test_sample_with_asymptote(self, client):
        response = client.post(
            "/api/v1/graphs/sample",
            json={"expression": "1/x", "domain_min": -1, "domain_max": 1, "num_points": 5},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["x"] == [-1.0, -0.5, 0.0, 0.5, 1.0]
        assert body["y"] == [-1.0, -2.0, None, 2.0, 1.0]

    def test_invalid_expression(self, client):
        response = client.post("/api/v1/graphs/sample", json={"expression": "x + "})
        assert response.status_code == 422

    def test_invalid_domain(self, client):
        response = client.post(
            "/api/v1/graphs/sample", json={"expression": "x", "domain_min": 2, "domain_max": 1}
        )
        assert response.status_code == 422


class TestIllustrationRoutes:
    """Test illustration deletion."""

    def test_delete(self, client, generator):
        generator.delete_illustration.return_value = True

        response = client.delete("/api/v1/illustrations/file1", headers={"x-internal-secret": SECRET})

        assert response.status_code == 200
        assert response.json() == {"file_id": "file1", "deleted": True}
        generator.delete_illustration.assert_called_once_with("file1")

    def test_delete_failure(self, client, generator):
        generator.delete_illustration.return_value = False

        response = client.delete("/api/v1/illustrations/file1", headers={"x-internal-secret": SECRET})

        assert response.status_code == 502


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}
