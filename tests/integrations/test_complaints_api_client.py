import json

import httpx
import pytest

from complaint_response_app.core.schemas import GenerationRequest
from complaint_response_app.integrations.complaints_api import (
    ComplaintsApiBadResponse,
    ComplaintsApiError,
    ComplaintsApiTimeout,
)

from tests._helpers import LIST_URL, PROCESS_URL, SAVE_URL

SAVE_FIELDS = {
    "complaint": "card fee dispute",
    "originalResponse": "Dear customer...",
    "editedResponse": "Dear customer...",
    "originalCategory": "Credit Cards",
    "editedCategory": "Credit Cards",
}


def test_process_complaint_posts_json(api_client, mock_http):
    route = mock_http.post(PROCESS_URL).respond(
        json={"response": "Dear customer...", "category": "Credit Cards", "prompt": "p1"}
    )
    result = api_client.process_complaint(
        GenerationRequest(complaint="card fee dispute", findings="", response_tones=["polite"]),
        cookie="StaticWebAppsAuthCookie=abc",
    )
    assert (result.response, result.category, result.prompt) == ("Dear customer...", "Credit Cards", "p1")
    sent = route.calls.last.request
    assert sent.headers["content-type"] == "application/json"
    assert sent.headers["cookie"] == "StaticWebAppsAuthCookie=abc"
    assert json.loads(sent.content) == {
        "complaint": "card fee dispute",
        "findings": "",
        "responseTones": ["polite"],
    }


def test_process_complaint_without_prompt(api_client, mock_http):
    mock_http.post(PROCESS_URL).respond(json={"response": "r", "category": "Staff"})
    result = api_client.process_complaint(GenerationRequest(complaint="c"))
    assert result.prompt is None


@pytest.mark.parametrize("status", [400, 500, 503])
def test_process_complaint_bad_status(api_client, mock_http, status):
    mock_http.post(PROCESS_URL).respond(status_code=status)
    with pytest.raises(ComplaintsApiBadResponse) as err:
        api_client.process_complaint(GenerationRequest(complaint="c"))
    assert err.value.status == status


def test_process_complaint_timeout(api_client, mock_http):
    mock_http.post(PROCESS_URL).mock(side_effect=httpx.ReadTimeout)
    with pytest.raises(ComplaintsApiTimeout):
        api_client.process_complaint(GenerationRequest(complaint="c"))


def test_process_complaint_connect_error(api_client, mock_http):
    mock_http.post(PROCESS_URL).mock(side_effect=httpx.ConnectError)
    with pytest.raises(ComplaintsApiError):
        api_client.process_complaint(GenerationRequest(complaint="c"))


def test_process_complaint_missing_fields(api_client, mock_http):
    mock_http.post(PROCESS_URL).respond(json={"category": "Staff"})
    with pytest.raises(ComplaintsApiBadResponse):
        api_client.process_complaint(GenerationRequest(complaint="c"))


def test_process_complaint_non_json_body(api_client, mock_http):
    mock_http.post(PROCESS_URL).respond(text="<html>oops</html>")
    with pytest.raises(ComplaintsApiBadResponse):
        api_client.process_complaint(GenerationRequest(complaint="c"))


def test_save_without_document_is_multipart_and_omits_file(api_client, mock_http):
    route = mock_http.post(SAVE_URL).respond(json={"status": "Saved", "responseId": "abc123"})
    result = api_client.save_response(SAVE_FIELDS)
    assert (result.status, result.response_id) == ("Saved", "abc123")
    sent = route.calls.last.request
    assert sent.headers["content-type"].startswith("multipart/form-data")
    body = sent.content
    for name in SAVE_FIELDS:
        assert f'name="{name}"'.encode() in body
    assert b'name="document"' not in body
    assert b"filename=" not in body


def test_save_with_document_and_score(api_client, mock_http):
    route = mock_http.post(SAVE_URL).respond(json={"status": "Saved", "responseId": 42})
    fields = dict(SAVE_FIELDS, responseScore="4", responsePrompt="p1")
    result = api_client.save_response(
        fields, document=("evidence.pdf", b"%PDF-1.4 test", "application/pdf")
    )
    assert result.response_id == "42"
    body = route.calls.last.request.content
    assert b'name="document"; filename="evidence.pdf"' in body
    assert b"%PDF-1.4 test" in body
    assert b'name="responseScore"' in body
    assert b"\r\n\r\n4\r\n" in body


def test_save_failure(api_client, mock_http):
    mock_http.post(SAVE_URL).respond(status_code=500, json={"error": "db down"})
    with pytest.raises(ComplaintsApiBadResponse):
        api_client.save_response(SAVE_FIELDS)


def test_get_saved_responses_parses_server_records(api_client, mock_http):
    mock_http.get(LIST_URL).respond(
        json={
            "responses": [
                {
                    "Id": 1,
                    "ResponseId": "abc123",
                    "Complaint": "card fee dispute",
                    "OriginalResponse": "Dear customer...",
                    "EditedResponse": "Dear Ms Smith...",
                    "OriginalCategory": "Credit Cards",
                    "EditedCategory": "Staff",
                    "DocumentUrl": "https://files.example/abc123.pdf",
                    "SavedAt": "2024-03-01T10:15:00Z",
                },
                {
                    "Id": 2,
                    "ResponseId": "def456",
                    "Complaint": "branch closed",
                    "OriginalResponse": "r",
                    "EditedResponse": "r",
                    "OriginalCategory": "Channels",
                    "EditedCategory": "Channels",
                    "DocumentUrl": None,
                    "SavedAt": "2024-03-02T08:00:00",
                },
            ]
        }
    )
    records = api_client.get_saved_responses()
    assert [r.response_id for r in records] == ["abc123", "def456"]
    assert records[0].edited_category == "Staff"
    assert records[0].document_url == "https://files.example/abc123.pdf"
    assert records[1].document_url is None


def test_get_saved_responses_empty_and_null(api_client, mock_http):
    mock_http.get(LIST_URL).respond(json={"responses": None})
    assert api_client.get_saved_responses() == []
