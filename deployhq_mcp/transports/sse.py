"""SSE transport: one MCP session per long-lived GET /sse connection.

The client opens ``GET /sse`` with credential headers and receives an
``endpoint`` event naming ``/message?sessionId=<id>``. Follow-up JSON-RPC
messages are POSTed there and routed to the session by id; responses flow
back as ``message`` events on the open stream.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

import anyio
from anyio.streams.memory import MemoryObjectSendStream
from mcp import types
from mcp.shared.message import SessionMessage
from pydantic import ValidationError
from sse_starlette.sse import EventSourceResponse
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from deployhq_mcp.api import DeployHQClient
from deployhq_mcp.exceptions import DeployHQError
from deployhq_mcp.mcp_server import create_server
from deployhq_mcp.models import Credentials, ServerConfig
from deployhq_mcp.transports import MISSING_HEADERS_MESSAGE, credentials_from_headers

log = logging.getLogger(__name__)

ClientFactory = Callable[[Credentials], DeployHQClient]


@dataclass
class SseSession:
    session_id: str
    account: str
    writer: MemoryObjectSendStream[Any]


class SseSessionRegistry:
    """Live SSE sessions keyed by session id.

    Only touched from the event loop, so run-to-completion scheduling keeps
    it consistent. Running this on worker threads would need a lock.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, SseSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def add(self, session: SseSession) -> None:
        self._sessions[session.session_id] = session

    def get(self, session_id: str) -> SseSession | None:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> SseSession | None:
        return self._sessions.pop(session_id, None)

    def ids(self) -> list[str]:
        return list(self._sessions)


class SseTransport:
    """ASGI endpoint for ``GET /sse`` plus the ``POST /message`` handler."""

    def __init__(
        self,
        server_config: ServerConfig,
        *,
        message_path: str = "/message",
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.server_config = server_config
        self.message_path = message_path
        self.sessions = SseSessionRegistry()
        self._client_factory = client_factory or DeployHQClient.from_credentials

    def routes(self, sse_path: str = "/sse") -> list[Route]:
        return [
            Route(sse_path, endpoint=self, methods=["GET"]),
            Route(self.message_path, endpoint=self.handle_post_message, methods=["POST"]),
        ]

    # -------------------------------------------------------------------
    # GET /sse
    # -------------------------------------------------------------------

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        log.info("New SSE connection")
        request = Request(scope, receive)
        credentials = credentials_from_headers(request.headers)
        if credentials is None:
            log.error("Missing credentials in request headers")
            response = JSONResponse(
                {"error": "Unauthorized", "message": MISSING_HEADERS_MESSAGE},
                status_code=401,
            )
            await response(scope, receive, send)
            return

        try:
            client = self._client_factory(credentials)
        except DeployHQError as e:
            log.error("Error creating MCP server: %s", e.message)
            response = JSONResponse(
                {"error": "Server initialization failed", "message": e.message},
                status_code=500,
            )
            await response(scope, receive, send)
            return

        server = create_server(client, self.server_config)
        session_id = uuid4().hex
        read_writer, read_stream = anyio.create_memory_object_stream[Any](0)
        write_stream, write_reader = anyio.create_memory_object_stream[SessionMessage](0)
        event_sender, event_reader = anyio.create_memory_object_stream[dict[str, str]](0)
        endpoint = f"{scope.get('root_path', '')}{self.message_path}?sessionId={session_id}"

        self.sessions.add(SseSession(session_id, credentials.account, read_writer))
        log.info("Created SSE session %s for account %s", session_id, credentials.account)

        async def forward_events() -> None:
            async with event_sender, write_reader:
                await event_sender.send({"event": "endpoint", "data": endpoint})
                async for session_message in write_reader:
                    await event_sender.send(
                        {
                            "event": "message",
                            "data": session_message.message.model_dump_json(
                                by_alias=True, exclude_none=True
                            ),
                        }
                    )

        async def run_server() -> None:
            try:
                await server.run(read_stream, write_stream, server.create_initialization_options())
            except* (anyio.ClosedResourceError, anyio.BrokenResourceError):
                log.debug("SSE session %s closed with a response still pending", session_id)

        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(run_server)
                await EventSourceResponse(
                    content=event_reader, data_sender_callable=forward_events
                )(scope, receive, send)
                # Stop routing input; calls already upstream run to completion.
                await read_writer.aclose()
                await write_reader.aclose()
        finally:
            self.sessions.remove(session_id)
            log.info("SSE connection closed (session %s)", session_id)

    # -------------------------------------------------------------------
    # POST /message?sessionId=...
    # -------------------------------------------------------------------

    async def handle_post_message(self, request: Request) -> Response:
        session_id = request.query_params.get("sessionId")
        log.debug("Received POST to %s with sessionId: %s", self.message_path, session_id)
        if not session_id:
            log.error("No session ID provided in query parameter")
            return JSONResponse({"error": "Missing sessionId query parameter"}, status_code=400)

        session = self.sessions.get(session_id)
        if session is None:
            log.error("No session found for ID %s (active: %s)", session_id, self.sessions.ids())
            return JSONResponse({"error": "Session not found"}, status_code=404)

        body = await request.body()
        try:
            message = types.JSONRPCMessage.model_validate_json(body)
        except ValidationError:
            log.error("Could not parse message for session %s", session_id)
            return JSONResponse({"error": "Could not parse message"}, status_code=400)

        return Response(
            "Accepted",
            status_code=202,
            background=BackgroundTask(self._deliver, session, SessionMessage(message)),
        )

    async def _deliver(self, session: SseSession, message: SessionMessage) -> None:
        try:
            await session.writer.send(message)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            log.warning("SSE session %s closed before message delivery", session.session_id)
