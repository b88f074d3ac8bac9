import pytest

from complaint_response_app.auth.session import (
    ANONYMOUS,
    SESSION_ERROR_MESSAGE,
    SessionState,
    SessionStatus,
    user_from_principal,
)
from complaint_response_app.listing.view import (
    EMPTY_MESSAGE,
    LOAD_FAILED_MESSAGE,
    LOGIN_REQUIRED_MESSAGE,
    ListingRow,
    ListingStatus,
    build_listing,
    format_saved_at,
)

from tests._helpers import LIST_URL, principal

RECORD = {
    "Id": 7,
    "ResponseId": "abc123",
    "Complaint": "card fee dispute",
    "OriginalResponse": "Dear customer...",
    "EditedResponse": "Dear Ms Smith...",
    "OriginalCategory": "Credit Cards",
    "EditedCategory": "Staff",
    "DocumentUrl": "https://files.example/abc123.pdf",
    "SavedAt": "2024-03-01T10:15:00Z",
}


def _session(*roles):
    user = user_from_principal(principal(roles=("authenticated",) + roles)["clientPrincipal"])
    return SessionState(SessionStatus.AUTHENTICATED, user=user)


def test_anonymous_gets_login_message_without_fetch(api_client, mock_http):
    route = mock_http.get(LIST_URL).respond(json={"responses": [RECORD]})
    page = build_listing(ANONYMOUS, api_client)
    assert page.status is ListingStatus.LOGIN_REQUIRED
    assert page.message == LOGIN_REQUIRED_MESSAGE
    assert not route.called


def test_session_error_also_requires_login(api_client):
    page = build_listing(SessionState(SessionStatus.ERROR, error=SESSION_ERROR_MESSAGE), api_client)
    assert page.status is ListingStatus.LOGIN_REQUIRED


def test_unauthorized_role_gets_contact_message(api_client, mock_http):
    route = mock_http.get(LIST_URL).respond(json={"responses": [RECORD]})
    page = build_listing(_session("guest"), api_client, admin_contact="help@bank.test")
    assert page.status is ListingStatus.FORBIDDEN
    assert page.message == (
        "You are not authorized to access this page. Please contact help@bank.test."
    )
    assert not route.called


@pytest.mark.parametrize("role", ["complaintsysuser", "complaintsysadmin"])
def test_listing_roles_fetch_rows(api_client, mock_http, role):
    mock_http.get(LIST_URL).respond(json={"responses": [RECORD, dict(RECORD, Id=8, DocumentUrl=None)]})
    page = build_listing(_session(role), api_client, time_format="%Y-%m-%d %H:%M")
    assert page.status is ListingStatus.READY
    first, second = page.rows
    assert first.response_id == "abc123"
    assert first.edited_response == "Dear Ms Smith..."
    assert first.category == "Staff"
    assert first.saved_at == "2024-03-01 10:15"
    assert first.has_document
    assert not second.has_document


def test_empty_result(api_client, mock_http):
    mock_http.get(LIST_URL).respond(json={"responses": []})
    page = build_listing(_session("complaintsysuser"), api_client)
    assert page.status is ListingStatus.EMPTY
    assert page.message == EMPTY_MESSAGE


def test_fetch_failure(api_client, mock_http):
    mock_http.get(LIST_URL).respond(status_code=500)
    page = build_listing(_session("complaintsysuser"), api_client)
    assert page.status is ListingStatus.FAILED
    assert page.message == LOAD_FAILED_MESSAGE
    assert page.rows == []


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2024-03-01T10:15:00Z", "01/03/2024, 10:15:00"),
        ("2024-12-31T23:59:59+02:00", "31/12/2024, 23:59:59"),
        ("2024-03-01T10:15:00.1234567Z", "01/03/2024, 10:15:00"),
        ("2024-03-01T10:15:00.12", "01/03/2024, 10:15:00"),
        ("2024-03-01T10:15:00.123456789+00:00", "01/03/2024, 10:15:00"),
        ("yesterday", "yesterday"),
        ("", ""),
    ],
)
def test_format_saved_at(raw, expected):
    assert format_saved_at(raw, "%d/%m/%Y, %H:%M:%S") == expected


def test_seven_digit_fraction_keeps_microseconds():
    assert format_saved_at("2024-03-01T10:15:00.1234567Z", "%S.%f") == "00.123456"


@pytest.mark.parametrize(
    "url,linked",
    [
        ("https://files.example/abc123.pdf", True),
        ("HTTP://files.example/a.pdf", True),
        ("javascript:alert(1)", False),
        ("data:text/html;base64,PHNjcmlwdD4=", False),
        ("//files.example/a.pdf", False),
        ("", False),
        (None, False),
    ],
)
def test_only_web_links_count_as_documents(url, linked):
    row = ListingRow("abc123", "c", "r", "Staff", "", document_url=url)
    assert row.has_document is linked
