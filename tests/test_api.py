"""
Tests for the HTTP API
"""
import json

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, Mock

from main import app
from config import settings
from api.dependencies import get_flashcard_service
from services.flashcard_service import FlashcardService
from services.question_service import QuestionService
from services.result_cache import ResultCache
from services.sequential_processor import SequentialProcessor
from services.summary_service import SummaryService
from services.text_extractor import PDF_MEDIA_TYPE, PPTX_MEDIA_TYPE


TRUE_FALSE_RESPONSE = json.dumps([
    {"question": "Statement: Paris is the capital of France", "answer": "True: correct"}
])


def build_service(upload_dir, llm_responses, extracted_text="Paris is the capital of France."):
    llm = Mock()
    llm.complete = AsyncMock(side_effect=llm_responses)
    llm.get_model_info.return_value = {"model": "stub"}

    extractor = Mock()
    extractor.extract_text = Mock(return_value=extracted_text)

    processor = SequentialProcessor(delay_seconds=0)
    return FlashcardService(
        upload_directory=str(upload_dir),
        llm_service=llm,
        text_extractor=extractor,
        summary_service=SummaryService(llm, processor=processor),
        question_service=QuestionService(llm, processor=processor),
        result_cache=ResultCache(),
        processing_timeout=10
    ), llm


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def use_service(service):
    app.dependency_overrides[get_flashcard_service] = lambda: service


class TestProcessFile:

    def test_truefalse_end_to_end(self, client, tmp_path):
        """One chunk, stub model answers with a single true/false pair"""
        service, llm = build_service(tmp_path, [TRUE_FALSE_RESPONSE, TRUE_FALSE_RESPONSE])
        use_service(service)

        response = client.post(
            "/process-file",
            files={"file": ("notes.pdf", b"%PDF-1.4 fake", PDF_MEDIA_TYPE)},
            data={"questionType": "truefalse", "numQuestions": "3"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["questionType"] == "truefalse"
        assert body["summary"]
        assert body["questions"] == [
            {"question": "Statement: Paris is the capital of France", "answer": "True: correct"}
        ]
        assert llm.complete.await_count == 2
        assert list(tmp_path.iterdir()) == []

    def test_truefalse_across_chunks(self, client, tmp_path):
        """A 3000 character document, stub model always answering with one pair"""
        sentence = "The mitochondria is the powerhouse of the cell and makes energy. "
        text = (sentence * 47)[:3000]
        service, llm = build_service(tmp_path, None, extracted_text=text)
        llm.complete = AsyncMock(return_value=TRUE_FALSE_RESPONSE)
        use_service(service)

        response = client.post(
            "/process-file",
            files={"file": ("biology.pdf", b"%PDF-1.4 fake", PDF_MEDIA_TYPE)},
            data={"questionType": "truefalse", "numQuestions": "3"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["questionType"] == "truefalse"
        assert len(body["questions"]) == 3
        assert all(q["question"] == "Statement: Paris is the capital of France" for q in body["questions"])
        # 4 chunks summarized, 4 chunks questioned
        assert llm.complete.await_count == 8
        assert list(tmp_path.iterdir()) == []

    def test_defaults(self, client, tmp_path):
        pairs = json.dumps([
            {"question": f"Question number {i} here?", "answer": f"Answer number {i} here."} for i in range(7)
        ])
        service, llm = build_service(tmp_path, ["A summary.", pairs])
        use_service(service)

        response = client.post(
            "/process-file",
            files={"file": ("deck.pptx", b"PK fake", PPTX_MEDIA_TYPE)}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["questionType"] == "1marker"
        assert len(body["questions"]) == 5
        assert llm.complete.call_args_list[1].args[0].startswith("Create 2-3 one-mark questions")

    def test_missing_file(self, client, tmp_path):
        service, llm = build_service(tmp_path, [])
        use_service(service)

        response = client.post("/process-file", data={"questionType": "1marker"})

        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_FILE"
        llm.complete.assert_not_called()

    def test_unsupported_media_type(self, client, tmp_path):
        service, llm = build_service(tmp_path, [])
        use_service(service)

        response = client.post(
            "/process-file",
            files={"file": ("notes.txt", b"plain text", "text/plain")}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FILE_TYPE"
        llm.complete.assert_not_called()

    def test_invalid_question_type(self, client, tmp_path):
        service, _ = build_service(tmp_path, [])
        use_service(service)

        response = client.post(
            "/process-file",
            files={"file": ("notes.pdf", b"%PDF", PDF_MEDIA_TYPE)},
            data={"questionType": "essay"}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_QUESTION_TYPE"
        assert "Valid types are" in body["details"]

    @pytest.mark.parametrize("num_questions", ["0", "21", "many"])
    def test_question_count_out_of_range(self, client, tmp_path, num_questions):
        service, _ = build_service(tmp_path, [])
        use_service(service)

        response = client.post(
            "/process-file",
            files={"file": ("notes.pdf", b"%PDF", PDF_MEDIA_TYPE)},
            data={"numQuestions": num_questions}
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_empty_file(self, client, tmp_path):
        service, _ = build_service(tmp_path, [])
        use_service(service)

        response = client.post(
            "/process-file",
            files={"file": ("notes.pdf", b"", PDF_MEDIA_TYPE)}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "EMPTY_FILE"

    def test_file_too_large(self, client, tmp_path, monkeypatch):
        service, _ = build_service(tmp_path, [])
        use_service(service)
        monkeypatch.setattr(settings, "max_file_size_mb", 0)

        response = client.post(
            "/process-file",
            files={"file": ("notes.pdf", b"%PDF-1.4", PDF_MEDIA_TYPE)}
        )

        assert response.status_code == 413
        assert response.json()["code"] == "FILE_TOO_LARGE"

    def test_pipeline_failure(self, client, tmp_path):
        service, _ = build_service(tmp_path, [], extracted_text="   ")
        use_service(service)

        response = client.post(
            "/process-file",
            files={"file": ("scan.pdf", b"%PDF-1.4", PDF_MEDIA_TYPE)}
        )

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Error processing file"
        assert body["details"] == "No text content found in the file"
        assert body["code"] == "TEXT_EXTRACTION_FAILED"
        assert list(tmp_path.iterdir()) == []

    def test_no_questions(self, client, tmp_path):
        service, _ = build_service(tmp_path, ["A summary.", "[]", "[]"])
        use_service(service)

        response = client.post(
            "/process-file",
            files={"file": ("notes.pdf", b"%PDF-1.4", PDF_MEDIA_TYPE)}
        )

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Error processing file"
        assert body["code"] == "NO_QUESTIONS_GENERATED"


class TestHealthEndpoints:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_liveness(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_root_lists_endpoints(self, client):
        response = client.get("/")

        assert response.json()["endpoints"]["process_file"] == "POST /process-file"

    def test_info(self, client):
        body = client.get("/info").json()

        assert body["configuration"]["chunk_size"] == 800
