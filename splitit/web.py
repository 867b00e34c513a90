"""Browser-facing web application for splitIt."""
from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

import anyio
from fastapi import Body, FastAPI, Form, HTTPException, Query, Request, WebSocket, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.middleware.sessions import SessionMiddleware
from starlette.websockets import WebSocketDisconnect

from .alerts import AlertService
from .client import APIError, SplitItClient
from .config import Settings, load_settings, resolve_config_path
from .detail import TransactionDetailView
from .dialogs import TransactionByGroupDialog
from .events import TRANSACTION_UPDATED, EventBus
from .modal import ModalInstance, ModalOutcome
from .models import NavigationState
from .pagination import DEFAULT_ITEMS_PER_PAGE, Pageable
from .sessions import SessionManager, WebSession

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

SESSION_COOKIE_NAME = "splitit_session"
DEFAULT_PREVIOUS_STATE = "transaction"

logger = logging.getLogger("splitit.web")

ClientFactory = Callable[[Optional[str]], SplitItClient]


def create_app(
    *,
    settings: Optional[Settings] = None,
    bus: Optional[EventBus] = None,
    sessions: Optional[SessionManager] = None,
    client_factory: Optional[ClientFactory] = None,
) -> FastAPI:
    """Create the splitIt web application."""

    if settings is None:
        settings = load_settings(resolve_config_path(os.getenv("SPLITIT_CONFIG")))
    if not settings.session_secret:
        raise RuntimeError("SPLITIT_SESSION_SECRET must be configured to use the web interface")

    if bus is None:
        bus = EventBus()
    if sessions is None:
        sessions = SessionManager(ttl=timedelta(hours=settings.session_ttl_hours))

    def _default_client_factory(token: Optional[str]) -> SplitItClient:
        return SplitItClient(
            settings.api_base_url,
            token=token,
            timeout=settings.api_timeout,
            verify=settings.api_verify,
        )

    if client_factory is None:
        client_factory = _default_client_factory

    app = FastAPI(
        title="splitIt",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.bus = bus
    app.state.sessions = sessions
    app.state.client_factory = client_factory

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=SESSION_COOKIE_NAME,
        https_only=settings.secure_cookie,
        same_site="lax",
        max_age=int(sessions.ttl.total_seconds()),
    )

    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))

    def _flash(request: Request, message: str, *, category: str = "info") -> None:
        messages = request.session.get("flash_messages")
        if not isinstance(messages, list):
            messages = []
        messages.append({"message": message, "category": category})
        request.session["flash_messages"] = messages

    def _consume_flash(request: Request) -> List[Dict[str, str]]:
        messages = request.session.pop("flash_messages", [])
        if isinstance(messages, list):
            return messages
        return []

    def _session_from(scope_session: Any) -> Optional[WebSession]:
        if not isinstance(scope_session, dict):
            return None
        session_id = scope_session.get("sid")
        if not isinstance(session_id, str) or not session_id:
            return None
        return sessions.resolve(session_id)

    def _current_session(request: Request) -> Optional[WebSession]:
        web_session = _session_from(request.session)
        if web_session is None:
            request.session.pop("sid", None)
        return web_session

    def _end_session(request: Request) -> None:
        session_id = request.session.get("sid")
        if isinstance(session_id, str):
            sessions.destroy(session_id)
        request.session.clear()

    def _redirect_to_login(request: Request) -> RedirectResponse:
        return RedirectResponse(
            request.url_for("show_login"),
            status_code=status.HTTP_303_SEE_OTHER,
        )

    def _require_api_session(request: Request) -> WebSession:
        web_session = _current_session(request)
        if web_session is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in")
        return web_session

    @asynccontextmanager
    async def _client(web_session: Optional[WebSession]) -> AsyncIterator[SplitItClient]:
        client = client_factory(web_session.api_token if web_session else None)
        try:
            yield client
        finally:
            await client.aclose()

    def _backend_failure(request: Request, exc: APIError) -> RedirectResponse | None:
        """Return a login redirect when the backend rejected our credentials."""
        if exc.is_unauthorized:
            _end_session(request)
            _flash(request, "Your session has expired. Please sign in again.", category="warning")
            return _redirect_to_login(request)
        return None

    @app.get("/", response_class=HTMLResponse, name="index")
    async def index(request: Request):
        web_session = _current_session(request)
        if web_session is None:
            return _redirect_to_login(request)
        return templates.TemplateResponse(
            request,
            "index.html",
            {"login": web_session.login, "messages": _consume_flash(request)},
        )

    @app.get("/login", response_class=HTMLResponse, name="show_login")
    async def login_form(request: Request):
        if _current_session(request) is not None:
            return RedirectResponse(request.url_for("index"), status_code=status.HTTP_303_SEE_OTHER)
        return templates.TemplateResponse(
            request,
            "login.html",
            {"messages": _consume_flash(request)},
        )

    @app.post("/login", name="process_login")
    async def process_login(
        request: Request,
        username: str = Form(...),
        password: str = Form(...),
        remember_me: bool = Form(False),
    ):
        cleaned = username.strip()
        try:
            async with _client(None) as client:
                token = await client.authenticate(cleaned, password, remember_me=remember_me)
        except APIError as exc:
            logger.info("Sign-in failed for %s: %s", cleaned, exc.message)
            _flash(request, "Invalid username or password.", category="error")
            return _redirect_to_login(request)

        request.session.clear()
        request.session["sid"] = sessions.create(cleaned, token)
        logger.info("User %s signed in", cleaned)
        return RedirectResponse(request.url_for("index"), status_code=status.HTTP_303_SEE_OTHER)

    @app.post("/logout", name="logout")
    async def logout(request: Request):
        _end_session(request)
        return _redirect_to_login(request)

    @app.get(
        "/groups/{group_id}/transactions/dialog",
        response_class=HTMLResponse,
        name="group_transaction_dialog",
    )
    async def group_transaction_dialog(request: Request, group_id: int):
        web_session = _current_session(request)
        if web_session is None:
            return _redirect_to_login(request)

        alerts = AlertService()
        modal = ModalInstance(f"group-{group_id}-transactions")
        async with _client(web_session) as client:
            dialog = TransactionByGroupDialog(
                backend=client,
                modal=modal,
                alerts=alerts,
                group_id=group_id,
            )
            await dialog.open()

        if dialog.last_error is not None:
            redirect = _backend_failure(request, dialog.last_error)
            if redirect is not None:
                return redirect

        return templates.TemplateResponse(
            request,
            "transaction_by_group_dialog.html",
            {
                "vm": dialog,
                "alerts": [alert.to_dict() for alert in alerts.consume()],
            },
        )

    @app.post("/groups/{group_id}/transactions/dialog/clear", name="clear_group_transaction_dialog")
    async def clear_group_transaction_dialog(request: Request, group_id: int):
        """Acknowledge a dismissal; the modal itself lives in the browser."""
        _require_api_session(request)
        modal = ModalInstance(f"group-{group_id}-transactions")
        dialog = TransactionByGroupDialog(
            backend=None,
            modal=modal,
            alerts=AlertService(),
            group_id=group_id,
        )
        dialog.clear()
        return JSONResponse(
            {
                "dismissed": modal.outcome is ModalOutcome.DISMISSED,
                "reason": modal.reason,
            }
        )

    @app.get("/groups/{group_id}/transactions", response_class=HTMLResponse, name="group_transactions")
    async def group_transactions(
        request: Request,
        group_id: int,
        page: int = Query(0, ge=0),
        size: int = Query(DEFAULT_ITEMS_PER_PAGE, ge=1, le=100),
        predicate: str = Query("id", min_length=1),
        reverse: bool = Query(True),
    ):
        web_session = _current_session(request)
        if web_session is None:
            return _redirect_to_login(request)

        pageable = Pageable(page=page, size=size, predicate=predicate, reverse=reverse)
        try:
            async with _client(web_session) as client:
                group = await client.get_group(group_id)
                result = await client.group_transactions(group_id, pageable)
        except APIError as exc:
            redirect = _backend_failure(request, exc)
            if redirect is not None:
                return redirect
            if exc.status_code == status.HTTP_404_NOT_FOUND:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found") from exc
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc

        return templates.TemplateResponse(
            request,
            "group_transactions.html",
            {
                "group": group,
                "page": result,
                "pageable": pageable,
                "messages": _consume_flash(request),
            },
        )

    @app.get("/transactions/{transaction_id}", response_class=HTMLResponse, name="transaction_detail")
    async def transaction_detail(
        request: Request,
        transaction_id: int,
        previous: str = Query(DEFAULT_PREVIOUS_STATE, alias="from"),
    ):
        web_session = _current_session(request)
        if web_session is None:
            return _redirect_to_login(request)

        try:
            async with _client(web_session) as client:
                entity = await client.get_transaction(transaction_id)
        except APIError as exc:
            redirect = _backend_failure(request, exc)
            if redirect is not None:
                return redirect
            if exc.status_code == status.HTTP_404_NOT_FOUND:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found") from exc
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc

        with TransactionDetailView(bus, entity, NavigationState(previous)) as view:
            return templates.TemplateResponse(
                request,
                "transaction_detail.html",
                {"vm": view, "messages": _consume_flash(request)},
            )

    @app.put("/transactions/{transaction_id}", name="update_transaction")
    async def update_transaction(
        request: Request,
        transaction_id: int,
        payload: Dict[str, Any] = Body(...),
    ):
        web_session = _require_api_session(request)

        body_id = payload.get("id", transaction_id)
        if str(body_id) != str(transaction_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Transaction id in the body does not match the URL",
            )
        payload["id"] = transaction_id

        try:
            async with _client(web_session) as client:
                saved = await client.update_transaction(payload)
        except APIError as exc:
            if exc.is_unauthorized:
                _end_session(request)
            code = exc.status_code if exc.status_code and exc.status_code < 500 else status.HTTP_502_BAD_GATEWAY
            return JSONResponse(exc.data, status_code=code)

        delivered = bus.publish(TRANSACTION_UPDATED, saved)
        logger.debug("Broadcast update of transaction %s to %s view(s)", transaction_id, delivered)
        return JSONResponse(saved)

    @app.websocket("/transactions/{transaction_id}/live")
    async def transaction_live(websocket: WebSocket, transaction_id: int):
        web_session = _session_from(websocket.scope.get("session"))
        if web_session is None:
            await websocket.close(code=4401)
            return

        try:
            async with _client(web_session) as client:
                entity = await client.get_transaction(transaction_id)
        except APIError as exc:
            await websocket.close(code=4401 if exc.is_unauthorized else 4404)
            return

        await websocket.accept()

        loop = asyncio.get_running_loop()
        updates: asyncio.Queue[Dict[str, Any]] = asyncio.Queue()

        def _enqueue(payload: Any) -> None:
            loop.call_soon_threadsafe(updates.put_nowait, dict(payload))

        previous = websocket.query_params.get("from", DEFAULT_PREVIOUS_STATE)
        view = TransactionDetailView(bus, entity, NavigationState(previous), on_change=_enqueue)
        try:
            await websocket.send_json({"type": "transaction", "transaction": dict(view.transaction)})

            async with anyio.create_task_group() as task_group:

                async def pump_updates() -> None:
                    try:
                        while True:
                            payload = await updates.get()
                            await websocket.send_json({"type": "transaction", "transaction": payload})
                    except (WebSocketDisconnect, RuntimeError):
                        pass
                    finally:
                        task_group.cancel_scope.cancel()

                async def watch_client() -> None:
                    try:
                        while True:
                            message = await websocket.receive()
                            if message["type"] == "websocket.disconnect":
                                break
                    except WebSocketDisconnect:
                        pass
                    finally:
                        task_group.cancel_scope.cancel()

                task_group.start_soon(pump_updates)
                task_group.start_soon(watch_client)
        except WebSocketDisconnect:
            pass
        finally:
            view.destroy()

    return app


__all__ = ["create_app", "SESSION_COOKIE_NAME"]
