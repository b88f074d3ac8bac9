import json

from complaint_response_app import cli

from tests._helpers import LIST_URL


def test_list_responses_prints_records(mock_http, capsys):
    route = mock_http.get(LIST_URL).respond(
        json={
            "responses": [
                {
                    "Id": 1,
                    "ResponseId": "abc123",
                    "Complaint": "card fee dispute",
                    "OriginalResponse": "Dear customer...",
                    "EditedResponse": "Dear customer...",
                    "OriginalCategory": "Credit Cards",
                    "EditedCategory": "Credit Cards",
                    "DocumentUrl": None,
                    "SavedAt": "2024-03-01T10:15:00Z",
                }
            ]
        }
    )
    rc = cli.main(["list-responses", "--cookie", "StaticWebAppsAuthCookie=abc"])
    assert rc == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload[0]["response_id"] == "abc123"
    assert payload[0]["document_url"] is None
    assert route.calls.last.request.headers["cookie"] == "StaticWebAppsAuthCookie=abc"


def test_list_responses_reports_api_errors(mock_http, capsys):
    mock_http.get(LIST_URL).respond(status_code=503)
    rc = cli.main(["list-responses"])
    assert rc == 1
    out = json.loads(capsys.readouterr().out)
    assert out["status"] == 503


def test_serve_delegates_to_uvicorn(monkeypatch):
    import uvicorn

    seen = {}
    monkeypatch.setattr(uvicorn, "run", lambda target, **kw: seen.update(target=target, **kw))
    assert cli.main(["serve", "--port", "9001"]) == 0
    assert seen == {
        "target": "complaint_response_app.api.app:app",
        "host": "127.0.0.1",
        "port": 9001,
        "reload": False,
    }


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "complaint-desk" in capsys.readouterr().out
