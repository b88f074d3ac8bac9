from __future__ import annotations

import time
from typing import List, Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse, RedirectResponse, Response

from complaint_response_app import __version__
from complaint_response_app.auth.session import (
    SessionState,
    SessionStatus,
    is_authorized,
    login_url,
    logout_url,
    resolve_session,
)
from complaint_response_app.config import DRAFT_COOKIE, AppConfig, load_app_config
from complaint_response_app.core.schemas import CATEGORIES, SCORES, SUBMIT_ROLES, TONES
from complaint_response_app.intake import (
    Attachment,
    ComplaintForm,
    DraftStore,
    FormState,
    FormStateError,
    FormValidationError,
    IntakeService,
    NoDraftError,
)
from complaint_response_app.integrations.complaints_api import ComplaintsApiClient
from complaint_response_app.listing.view import build_listing, not_authorized_message
from complaint_response_app.utils.logging import init_logging
from complaint_response_app.utils.logging import logger as cra_logger
from complaint_response_app.web.templating import templates

from .error_handlers import register_error_handlers
from .middlewares import TraceHeadersMiddleware

SUBMIT_LOGIN_MESSAGE = "Please log in to submit a complaint."
NO_DRAFT_MESSAGE = "No draft response; submit a complaint first."


def _cookie(request: Request) -> Optional[str]:
    return request.headers.get("cookie")


def _session(request: Request) -> SessionState:
    cfg: AppConfig = request.app.state.config
    return resolve_session(cfg.identity_base, _cookie(request), cfg.identity_timeout_s)


def _draft(request: Request) -> Optional[ComplaintForm]:
    store: DraftStore = request.app.state.drafts
    return store.get(request.cookies.get(DRAFT_COOKIE))


def _attachment(request: Request, upload: Optional[UploadFile]) -> Optional[Attachment]:
    if upload is None or not upload.filename:
        return None
    cfg: AppConfig = request.app.state.config
    content = upload.file.read(cfg.max_attachment_bytes + 1)
    if len(content) > cfg.max_attachment_bytes:
        raise FormValidationError(
            f"attachment exceeds {cfg.max_attachment_bytes} bytes"
        )
    return Attachment(
        filename=upload.filename,
        content=content,
        content_type=upload.content_type or "application/octet-stream",
    )


def _render_submit_page(
    request: Request,
    session: SessionState,
    form: Optional[ComplaintForm],
    *,
    notice: str = "",
    status_code: int = 200,
) -> Response:
    cfg: AppConfig = request.app.state.config
    authorized = is_authorized(session.user, SUBMIT_ROLES)
    gate_message = ""
    if not session.is_authenticated:
        gate_message = SUBMIT_LOGIN_MESSAGE
    elif not authorized:
        gate_message = not_authorized_message(cfg.admin_contact)
    return templates.TemplateResponse(
        request,
        "complaint_form.html",
        {
            "page": "submit",
            "session": session,
            "gate_message": gate_message,
            "form": form or ComplaintForm(),
            "states": FormState,
            "notice": notice,
            "categories": CATEGORIES,
            "tones": TONES,
            "scores": SCORES,
            "login_url": "/login",
        },
        status_code=status_code,
    )


def _gate_submit(request: Request, session: SessionState) -> Optional[Response]:
    """Short-circuit POSTs from callers who may not use the submission form."""
    if not session.is_authenticated:
        if session.status is SessionStatus.UNAUTHENTICATED:
            return RedirectResponse("/", status_code=303)
        return _render_submit_page(request, session, None, status_code=401)
    if not is_authorized(session.user, SUBMIT_ROLES):
        return _render_submit_page(request, session, None, status_code=403)
    return None


def _back_to_form(request: Request, draft_id: str) -> Response:
    cfg: AppConfig = request.app.state.config
    resp = RedirectResponse("/", status_code=303)
    resp.set_cookie(
        DRAFT_COOKIE,
        draft_id,
        max_age=cfg.draft_ttl_s,
        httponly=True,
        samesite="lax",
        secure=cfg.secure_cookies,
    )
    return resp


def _status_for(exc: Exception) -> int:
    return 409 if isinstance(exc, FormStateError) else 422


def create_app(
    config: Optional[AppConfig] = None,
    client: Optional[ComplaintsApiClient] = None,
) -> FastAPI:
    cfg = config or load_app_config()
    api_client = client or ComplaintsApiClient(cfg.api_base, timeout_s=cfg.api_timeout_s)

    app = FastAPI(title="Complaint Response Desk", version=__version__)
    app.state.config = cfg
    app.state.client = api_client
    app.state.drafts = DraftStore(max_items=cfg.draft_max_items, ttl_s=cfg.draft_ttl_s)
    app.state.intake = IntakeService(api_client, audit_path=cfg.audit_log_path)

    register_error_handlers(app)
    app.add_middleware(TraceHeadersMiddleware)

    # log request details at INFO level
    @app.middleware("http")
    async def _request_logger(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            ms = (time.perf_counter() - start) * 1000
            cra_logger.info(
                "{method} {path} -> {status} ({ms:.2f} ms)",
                method=request.method,
                path=request.url.path,
                status=500,
                ms=ms,
            )
            raise
        ms = (time.perf_counter() - start) * 1000
        cra_logger.info(
            "{method} {path} -> {status} ({ms:.2f} ms)",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            ms=ms,
        )
        return response

    @app.get("/health")
    def health():
        return {"status": "ok", "version": __version__}

    @app.get("/login")
    def login():
        return RedirectResponse(login_url(), status_code=302)

    @app.get("/logout")
    def logout():
        return RedirectResponse(logout_url("/"), status_code=302)

    @app.get("/api/session")
    def api_session(request: Request):
        session = _session(request)
        status = 200 if session.status is not SessionStatus.ERROR else 502
        return JSONResponse(session.to_dict(), status_code=status)

    @app.get("/")
    def submit_page(request: Request):
        session = _session(request)
        return _render_submit_page(request, session, _draft(request))

    @app.post("/complaints/submit")
    def submit_complaint(
        request: Request,
        complaint: str = Form(""),
        findings: str = Form(""),
        tones: List[str] = Form([]),
        document: Optional[UploadFile] = File(None),
    ):
        session = _session(request)
        gate = _gate_submit(request, session)
        if gate is not None:
            return gate
        store: DraftStore = request.app.state.drafts
        draft_id = request.cookies.get(DRAFT_COOKIE) or store.new_id()
        fresh = store.get(draft_id) is None
        form = store.get_or_create(draft_id)
        try:
            with form.lock:
                form.update_fields(
                    complaint=complaint,
                    findings=findings,
                    tones=tones,
                    attachment=_attachment(request, document),
                )
            request.app.state.intake.submit(form, cookie=_cookie(request), user=session.user)
        except (FormStateError, FormValidationError) as exc:
            # the error page sets no cookie, so a new draft would be unreachable
            if fresh:
                store.discard(draft_id)
            return _render_submit_page(
                request, session, form, notice=str(exc), status_code=_status_for(exc)
            )
        return _back_to_form(request, draft_id)

    @app.post("/complaints/draft")
    def edit_draft(
        request: Request,
        edited_response: Optional[str] = Form(None),
        edited_category: Optional[str] = Form(None),
        score: Optional[str] = Form(None),
    ):
        session = _session(request)
        gate = _gate_submit(request, session)
        if gate is not None:
            return gate
        form = _draft(request)
        try:
            _apply_edits(form, edited_response, edited_category, score)
        except (FormStateError, FormValidationError) as exc:
            return _render_submit_page(
                request, session, form, notice=str(exc), status_code=_status_for(exc)
            )
        return _back_to_form(request, request.cookies[DRAFT_COOKIE])

    @app.post("/complaints/draft/save")
    def save_draft(
        request: Request,
        edited_response: Optional[str] = Form(None),
        edited_category: Optional[str] = Form(None),
        score: Optional[str] = Form(None),
        document: Optional[UploadFile] = File(None),
    ):
        session = _session(request)
        gate = _gate_submit(request, session)
        if gate is not None:
            return gate
        form = _draft(request)
        try:
            _apply_edits(form, edited_response, edited_category, score)
            attachment = _attachment(request, document)
            if attachment is not None:
                with form.lock:
                    form.update_fields(attachment=attachment)
            request.app.state.intake.save(form, cookie=_cookie(request), user=session.user)
        except (FormStateError, FormValidationError) as exc:
            return _render_submit_page(
                request, session, form, notice=str(exc), status_code=_status_for(exc)
            )
        return _back_to_form(request, request.cookies[DRAFT_COOKIE])

    @app.post("/complaints/draft/reset")
    def reset_draft(request: Request):
        session = _session(request)
        gate = _gate_submit(request, session)
        if gate is not None:
            return gate
        form = _draft(request)
        try:
            if form is None:
                raise NoDraftError(NO_DRAFT_MESSAGE)
            with form.lock:
                form.reset()
        except FormStateError as exc:
            return _render_submit_page(request, session, form, notice=str(exc), status_code=409)
        return _back_to_form(request, request.cookies[DRAFT_COOKIE])

    @app.get("/saved-responses")
    def saved_responses(request: Request):
        session = _session(request)
        if session.status is SessionStatus.UNAUTHENTICATED:
            return RedirectResponse("/", status_code=302)
        listing = build_listing(
            session,
            request.app.state.client,
            cookie=_cookie(request),
            time_format=cfg.listing_time_format,
            admin_contact=cfg.admin_contact,
        )
        return templates.TemplateResponse(
            request,
            "saved_responses.html",
            {"page": "saved", "session": session, "listing": listing, "login_url": "/login"},
        )

    return app


def _apply_edits(
    form: Optional[ComplaintForm],
    response: Optional[str],
    category: Optional[str],
    score: Optional[str],
) -> None:
    if form is None:
        raise NoDraftError(NO_DRAFT_MESSAGE)
    with form.lock:
        # A missing score field means the reviewer left it untouched.
        form.edit(
            response=response,
            category=category,
            score=... if score is None else score,
        )


init_logging()
app = create_app()
