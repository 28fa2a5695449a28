from __future__ import annotations

import functools
import logging
from typing import Any, Dict, List, Optional

import uvicorn
from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from command_api import database
from command_api.auth import install_authentication
from command_api.config import Settings, configure_logging, get_settings
from command_api.exceptions import BadRequest, CommandAPIError
from command_api.schemas import CommandSchema, serialize_command
from command_api.service import CommandService

logger = logging.getLogger(__name__)

API_ROOT = "/api/commands"

# FastMCP server hosting both the MCP tools and the REST routes
mcp = FastMCP(
    "command-api",
    instructions=(
        "Command catalogue: stored how-tos, each with a platform and the command line to run."
        " Use 'list_commands()' to list every stored command."
        " Use 'get_command(command_id)' to fetch one command."
        " Use 'create_command(how_to, platform?, command_line?)' to store a new command."
        " Use 'update_command(command_id, how_to, platform?, command_line?)' to replace a command."
        " Use 'delete_command(command_id)' to remove a command."
        " The same operations are available over REST at /api/commands."
    ),
)
# Default streamable HTTP endpoint path (client URL should include /mcp)
mcp.settings.streamable_http_path = "/mcp"


def command_service(db, settings: Optional[Settings] = None) -> CommandService:
    """Build the per-request service around an open session."""
    settings = settings or get_settings()
    return CommandService(db, settings.environment)


def _request_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def path_id(request: Request) -> int:
    """The {command_id} path segment as an int; anything else is a BadRequest."""
    raw = request.path_params["command_id"]
    try:
        return int(raw)
    except ValueError as e:
        raise BadRequest(f"Command id {raw!r} is not an integer") from e


async def read_payload(request: Request) -> CommandSchema:
    """Parse the request body as a Command; anything unparsable is a BadRequest."""
    try:
        data = await request.json()
    except ValueError as e:
        raise BadRequest("Request body is not valid JSON") from e
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object")
    try:
        return CommandSchema.model_validate(data)
    except ValidationError as e:
        raise BadRequest("Request body is not a command") from e


def api_errors(endpoint):
    """Answer CommandAPIErrors with their bare status code."""

    @functools.wraps(endpoint)
    async def wrapper(request: Request) -> Response:
        try:
            return await endpoint(request)
        except CommandAPIError as e:
            logger.debug("%s %s -> %s: %s", request.method, request.url.path, e.status_code, e)
            return Response(status_code=e.status_code)

    return wrapper


# ------------------------------
# REST API: commands
# ------------------------------

@mcp.custom_route(API_ROOT, methods=["GET"], name="list_commands")
@api_errors
async def list_commands(request: Request) -> Response:
    """Return every stored command, with an Environment diagnostic header."""
    headers: Dict[str, str] = {}
    with database.session_scope() as db:
        service = command_service(db, _request_settings(request))
        items = [serialize_command(c) for c in service.list_commands(headers)]
    return JSONResponse(items, headers=headers)


@mcp.custom_route(API_ROOT + "/{command_id}", methods=["GET"], name="get_command")
@api_errors
async def get_command(request: Request) -> Response:
    command_id = path_id(request)
    with database.session_scope() as db:
        service = command_service(db, _request_settings(request))
        item = serialize_command(service.get_command(command_id))
    return JSONResponse(item)


@mcp.custom_route(API_ROOT, methods=["POST"], name="create_command")
@api_errors
async def create_command(request: Request) -> Response:
    """Store a new command.

    Body: { "howTo": str, "platform": str, "commandLine": str }; an "id" is ignored.
    Answers 201 with the stored command and its location.
    """
    payload = await read_payload(request)
    with database.session_scope() as db:
        service = command_service(db, _request_settings(request))
        command = service.create_command(payload)
        item = serialize_command(command)
    location = str(request.url_for("get_command", command_id=item["id"]))
    return JSONResponse(item, status_code=201, headers={"Location": location})


@mcp.custom_route(API_ROOT + "/{command_id}", methods=["PUT"], name="update_command")
@api_errors
async def update_command(request: Request) -> Response:
    """Replace a command. The body's "id" must equal the id in the path."""
    command_id = path_id(request)
    payload = await read_payload(request)
    with database.session_scope() as db:
        command_service(db, _request_settings(request)).update_command(command_id, payload)
    return Response(status_code=204)


@mcp.custom_route(API_ROOT + "/{command_id}", methods=["DELETE"], name="delete_command")
@api_errors
async def delete_command(request: Request) -> Response:
    """Remove a command and echo it back."""
    command_id = path_id(request)
    with database.session_scope() as db:
        service = command_service(db, _request_settings(request))
        item = serialize_command(service.delete_command(command_id))
    return JSONResponse(item)


# Lightweight health endpoint for quick readiness checks
@mcp.custom_route("/healthz", methods=["GET"])
async def health_check(request):
    return JSONResponse({"status": "ok", "transport": "streamable-http", "path": mcp.settings.streamable_http_path})


# ------------------------------
# MCP tools mirroring the REST routes
# ------------------------------

@mcp.tool(name="list_commands")
def tool_list_commands() -> List[Dict[str, Any]]:
    """Return all stored commands."""
    with database.session_scope() as db:
        return [serialize_command(c) for c in command_service(db).list_commands()]


@mcp.tool(name="get_command")
def tool_get_command(command_id: int) -> Dict[str, Any]:
    """Return one command by id, or { "error": "not_found" }."""
    try:
        with database.session_scope() as db:
            return serialize_command(command_service(db).get_command(command_id))
    except CommandAPIError as e:
        return {"error": e.code}


@mcp.tool(name="create_command")
def tool_create_command(
    how_to: str, platform: Optional[str] = None, command_line: Optional[str] = None
) -> Dict[str, Any]:
    """Store a new command.

    Inputs:
    - how_to: required description of what the command does
    - platform: optional platform the command runs on
    - command_line: optional command line to run

    Returns the stored command (with its id), or { "error": "bad_request" }.
    """
    payload = CommandSchema(how_to=how_to, platform=platform, command_line=command_line)
    try:
        with database.session_scope() as db:
            return serialize_command(command_service(db).create_command(payload))
    except CommandAPIError as e:
        return {"error": e.code}


@mcp.tool(name="update_command")
def tool_update_command(
    command_id: int,
    how_to: str,
    platform: Optional[str] = None,
    command_line: Optional[str] = None,
) -> Dict[str, Any]:
    """Replace every field of a command. Returns { "status": "ok" } or { "error": code }."""
    payload = CommandSchema(
        id=command_id, how_to=how_to, platform=platform, command_line=command_line
    )
    try:
        with database.session_scope() as db:
            command_service(db).update_command(command_id, payload)
    except CommandAPIError as e:
        return {"error": e.code}
    return {"status": "ok"}


@mcp.tool(name="delete_command")
def tool_delete_command(command_id: int) -> Dict[str, Any]:
    """Delete a command and return it as it was, or { "error": "not_found" }."""
    try:
        with database.session_scope() as db:
            return serialize_command(command_service(db).delete_command(command_id))
    except CommandAPIError as e:
        return {"error": e.code}


@mcp.tool(name="help")
def tool_help() -> dict:
    """List available tools and their usage signatures for this server."""
    # Static descriptor to avoid relying on private internals of FastMCP
    return {
        "tools": [
            {"name": "list_commands", "args": {}, "description": "List all stored commands."},
            {
                "name": "get_command",
                "args": {"command_id": "int"},
                "description": "Fetch one command by id.",
            },
            {
                "name": "create_command",
                "args": {"how_to": "string", "platform": "string=null", "command_line": "string=null"},
                "description": "Store a new command; returns it with its assigned id.",
            },
            {
                "name": "update_command",
                "args": {
                    "command_id": "int",
                    "how_to": "string",
                    "platform": "string=null",
                    "command_line": "string=null",
                },
                "description": "Replace every field of an existing command.",
            },
            {
                "name": "delete_command",
                "args": {"command_id": "int"},
                "description": "Delete a command and return its last stored values.",
            },
        ]
    }


def build_app(settings: Optional[Settings] = None) -> Starlette:
    """Create the tables and assemble the ASGI app, bearer gate included."""
    settings = settings or get_settings()
    database.init_db()

    app = mcp.streamable_http_app()
    app.state.settings = settings
    # Render tracebacks for unhandled errors while developing
    app.debug = settings.is_development
    if settings.auth_enabled:
        install_authentication(app, settings)
    return app


def main():
    settings = get_settings()
    configure_logging(settings.log_level)
    app = build_app(settings)
    logger.info(
        "Serving command API (%s) on %s:%s", settings.environment, settings.host, settings.port
    )
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
