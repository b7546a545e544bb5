"""Tests for the quiz API routes (gateway adapters mocked, real document store)."""

import json

import pytest
from httpx import AsyncClient

from quizmaster.core.config import settings
from quizmaster.core.exceptions import UpstreamError
from quizmaster.core.rate_limit import limiter
from quizmaster.gateway.gateway import NO_WRONG_ANSWERS_MESSAGE

PDF = b"%PDF-1.4\nfake pdf body"


def _gemini(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _chat(text: str) -> dict:
    return {"choices": [{"message": {"content": text}}]}


def _questions(n: int) -> list[dict]:
    return [
        {
            "id": str(i),
            "question": f"Solve x + {i} = {2 * i}",
            "options": [str(i), "0", "1", "2"],
            "correctAnswerIndex": 0,
            "explanation": f"x = {i}",
        }
        for i in range(1, n + 1)
    ]


def _stored(store) -> list[str]:
    return sorted(p.name for p in store.root.iterdir())


class TestUploadAndAnalyze:
    @pytest.mark.asyncio
    async def test_success_keeps_document(self, client: AsyncClient, gemini, store):
        gemini.send.return_value = _gemini('```json\n[{"title":"T","description":"D"}]\n```')

        response = await client.post("/api/upload-and-analyze", files={"pdf": ("notes.pdf", PDF, "application/pdf")})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["topics"] == [{"title": "T", "description": "D"}]
        assert data["uploadedFileName"].endswith("-notes.pdf")
        assert _stored(store) == [data["uploadedFileName"]]
        assert store.read(data["uploadedFileName"]) == PDF

    @pytest.mark.asyncio
    async def test_empty_candidates_removes_document(self, client: AsyncClient, gemini, store):
        gemini.send.return_value = {"candidates": []}

        response = await client.post("/api/upload-and-analyze", files={"pdf": ("notes.pdf", PDF, "application/pdf")})

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Failed to process PDF with AI."
        assert "gemini" in data["details"]
        assert _stored(store) == []

    @pytest.mark.asyncio
    async def test_upstream_error_removes_document(self, client: AsyncClient, gemini, store):
        gemini.send.side_effect = UpstreamError("gemini", "HTTP 429: quota", status=429)

        response = await client.post("/api/upload-and-analyze", files={"pdf": ("notes.pdf", PDF, "application/pdf")})

        assert response.status_code == 500
        assert "HTTP 429" in response.json()["details"]
        assert _stored(store) == []

    @pytest.mark.asyncio
    async def test_parse_error_removes_document(self, client: AsyncClient, gemini, store):
        gemini.send.return_value = _gemini("Here are the topics: algebra, geometry")

        response = await client.post("/api/upload-and-analyze", files={"pdf": ("notes.pdf", PDF, "application/pdf")})

        assert response.status_code == 500
        assert "algebra, geometry" in response.json()["details"]
        assert _stored(store) == []

    @pytest.mark.asyncio
    async def test_empty_file_rejected(self, client: AsyncClient, gemini, store):
        response = await client.post("/api/upload-and-analyze", files={"pdf": ("empty.pdf", b"", "application/pdf")})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "File is empty."}
        gemini.send.assert_not_awaited()
        assert _stored(store) == []

    @pytest.mark.asyncio
    async def test_missing_file_field_rejected(self, client: AsyncClient, gemini):
        response = await client.post("/api/upload-and-analyze", files={"other": ("x.pdf", PDF, "application/pdf")})

        assert response.status_code == 400
        gemini.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_traversal_filename_stays_in_root(self, client: AsyncClient, gemini, store):
        gemini.send.return_value = _gemini("[]")

        response = await client.post(
            "/api/upload-and-analyze", files={"pdf": ("../../escape.pdf", PDF, "application/pdf")}
        )

        assert response.status_code == 200
        handle = response.json()["uploadedFileName"]
        assert "/" not in handle
        assert _stored(store) == [handle]


class TestGenerateQuiz:
    @pytest.mark.asyncio
    async def test_success_returns_questions_and_removes_document(self, client: AsyncClient, gemini, store):
        handle = store.save("algebra.pdf", PDF)
        questions = _questions(3)
        gemini.send.return_value = _gemini(json.dumps({"questions": questions}))

        response = await client.post(
            "/api/generate-quiz",
            json={"topic": "Algebra", "questionCount": 3, "uploadedFileName": handle},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["quiz"]["questions"] == questions
        assert not store.exists(handle)

        request = gemini.send.await_args.args[0]
        assert '"Algebra"' in request.prompt

    @pytest.mark.asyncio
    async def test_string_count_accepted(self, client: AsyncClient, gemini, store):
        handle = store.save("algebra.pdf", PDF)
        gemini.send.return_value = _gemini(json.dumps({"questions": _questions(5)}))

        response = await client.post(
            "/api/generate-quiz",
            json={"topic": "Algebra", "questionCount": "5", "uploadedFileName": handle},
        )

        assert response.status_code == 200
        assert "exactly 5" in gemini.send.await_args.args[0].prompt

    @pytest.mark.asyncio
    async def test_non_numeric_count_is_caller_error(self, client: AsyncClient, gemini, store):
        handle = store.save("algebra.pdf", PDF)

        response = await client.post(
            "/api/generate-quiz",
            json={"topic": "Algebra", "questionCount": "five", "uploadedFileName": handle},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False
        gemini.send.assert_not_awaited()
        assert store.exists(handle)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"questionCount": 3, "uploadedFileName": "1-x.pdf"},
            {"topic": "Algebra", "uploadedFileName": "1-x.pdf"},
            {"topic": "Algebra", "questionCount": 3},
            {},
        ],
    )
    async def test_missing_parameters(self, client: AsyncClient, gemini, body):
        response = await client.post("/api/generate-quiz", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required parameters."
        gemini.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_handle_is_404(self, client: AsyncClient, gemini):
        response = await client.post(
            "/api/generate-quiz",
            json={"topic": "Algebra", "questionCount": 3, "uploadedFileName": "1700000000000-gone.pdf"},
        )

        assert response.status_code == 404
        assert "Please upload again" in response.json()["error"]
        gemini.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_traversal_handle_rejected(self, client: AsyncClient, gemini, store, tmp_path):
        (tmp_path / "secret.pdf").write_bytes(b"secret")

        response = await client.post(
            "/api/generate-quiz",
            json={"topic": "Algebra", "questionCount": 3, "uploadedFileName": "../secret.pdf"},
        )

        assert response.status_code == 400
        assert (tmp_path / "secret.pdf").exists()
        gemini.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_still_removes_document(self, client: AsyncClient, gemini, store):
        handle = store.save("algebra.pdf", PDF)
        gemini.send.return_value = _gemini('{"not_questions": []}')

        response = await client.post(
            "/api/generate-quiz",
            json={"topic": "Algebra", "questionCount": 3, "uploadedFileName": handle},
        )

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to generate quiz from AI."
        assert not store.exists(handle)

    @pytest.mark.asyncio
    async def test_upstream_error_removes_document(self, client: AsyncClient, gemini, store):
        handle = store.save("algebra.pdf", PDF)
        gemini.send.side_effect = UpstreamError("gemini", "timeout after 60.0s")

        response = await client.post(
            "/api/generate-quiz",
            json={"topic": "Algebra", "questionCount": 3, "uploadedFileName": handle},
        )

        assert response.status_code == 500
        assert "timeout" in response.json()["details"]
        assert not store.exists(handle)


class TestAnalyzeWeakAreas:
    @pytest.mark.asyncio
    async def test_no_wrong_answers(self, client: AsyncClient, openrouter):
        response = await client.post("/api/analyze-weak-areas", json={"wrongAnswers": []})

        assert response.status_code == 200
        assert response.json() == {"analysis": NO_WRONG_ANSWERS_MESSAGE}
        openrouter.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_list_treated_as_empty(self, client: AsyncClient, openrouter):
        response = await client.post("/api/analyze-weak-areas", json={})

        assert response.json() == {"analysis": NO_WRONG_ANSWERS_MESSAGE}
        openrouter.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_analysis_returned(self, client: AsyncClient, openrouter):
        openrouter.send.return_value = _chat("You should review **negative numbers**.")
        wrong = [{"question": "-2 - 3 = ?", "yourAnswer": "-1", "correctAnswer": "-5"}]

        response = await client.post("/api/analyze-weak-areas", json={"wrongAnswers": wrong})

        assert response.status_code == 200
        assert response.json() == {"analysis": "You should review **negative numbers**."}
        request = openrouter.send.await_args.args[0]
        assert json.dumps(wrong, indent=2) in request.prompt

    @pytest.mark.asyncio
    async def test_upstream_failure(self, client: AsyncClient, openrouter):
        openrouter.send.side_effect = UpstreamError("openrouter", "HTTP 401: unauthorized", status=401)

        response = await client.post("/api/analyze-weak-areas", json={"wrongAnswers": [{"question": "q"}]})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to get analysis from AI."
        assert "HTTP 401" in response.json()["details"]


class TestServiceEndpoints:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_metrics(self, client: AsyncClient):
        await client.get("/api/health")
        response = await client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text

    @pytest.mark.asyncio
    async def test_request_id_header(self, client: AsyncClient):
        response = await client.get("/api/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"


class TestLooseRequestBodies:
    @pytest.mark.asyncio
    async def test_non_string_topic_is_missing_parameter(self, client: AsyncClient, gemini, store):
        handle = store.save("algebra.pdf", PDF)

        response = await client.post(
            "/api/generate-quiz",
            json={"topic": 5, "questionCount": 3, "uploadedFileName": handle},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["error"] == "Missing required parameters."
        gemini.send.assert_not_awaited()
        assert store.exists(handle)

    @pytest.mark.asyncio
    async def test_free_form_wrong_answers_forwarded(self, client: AsyncClient, openrouter):
        openrouter.send.return_value = _chat("Review question 3.")
        wrong = ["I picked B for Q3", {"question": "2+2?", "yourAnswer": "5"}]

        response = await client.post("/api/analyze-weak-areas", json={"wrongAnswers": wrong})

        assert response.status_code == 200
        assert response.json() == {"analysis": "Review question 3."}
        assert '"I picked B for Q3"' in openrouter.send.await_args.args[0].prompt

    @pytest.mark.asyncio
    async def test_unparseable_body_is_400_with_error_body(self, client: AsyncClient, openrouter):
        response = await client.post("/api/analyze-weak-areas", json={"wrongAnswers": "everything"})

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Invalid request parameters."
        assert "wrongAnswers" in data["details"]
        openrouter.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_malformed_json_is_400(self, client: AsyncClient):
        response = await client.post(
            "/api/generate-quiz", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestUploadLimits:
    @pytest.mark.asyncio
    async def test_oversized_file_rejected(self, client: AsyncClient, gemini, store, monkeypatch):
        monkeypatch.setattr(settings, "max_upload_bytes", 16)

        response = await client.post(
            "/api/upload-and-analyze", files={"pdf": ("big.pdf", b"%PDF" + b"x" * 64, "application/pdf")}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "File is too large."
        gemini.send.assert_not_awaited()
        assert _stored(store) == []

    @pytest.mark.asyncio
    async def test_file_at_limit_accepted(self, client: AsyncClient, gemini, store, monkeypatch):
        monkeypatch.setattr(settings, "max_upload_bytes", len(PDF))

        response = await client.post("/api/upload-and-analyze", files={"pdf": ("notes.pdf", PDF, "application/pdf")})

        assert response.status_code == 200
        assert store.read(response.json()["uploadedFileName"]) == PDF

    @pytest.mark.asyncio
    async def test_rate_limited_upload_uses_error_body(self, client: AsyncClient, gemini):
        limiter.reset()
        limiter.enabled = True
        try:
            statuses = []
            for _ in range(11):
                response = await client.post(
                    "/api/upload-and-analyze", files={"pdf": ("notes.pdf", PDF, "application/pdf")}
                )
                statuses.append(response.status_code)
        finally:
            limiter.enabled = False
            limiter.reset()

        assert statuses[:10] == [200] * 10
        assert statuses[10] == 429
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Too many requests. Please try again later."
        assert "10 per 1 minute" in data["details"]


class TestRequestMetrics:
    @pytest.mark.asyncio
    async def test_paths_labelled_by_route(self, client: AsyncClient):
        await client.get("/api/health")
        await client.get("/no/such/path/123")

        text = (await client.get("/metrics")).text

        assert 'path="/api/health"' in text
        assert 'path="<unmatched>"' in text
        assert "/no/such/path/123" not in text
