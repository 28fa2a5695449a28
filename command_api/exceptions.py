"""
Exceptions raised by the command service.

Each carries the HTTP status code the REST layer answers with, and a short
code for MCP tool results. Error responses have no body, so the status code
is the whole message.
"""


class CommandAPIError(Exception):
    """Base exception for all command API errors."""
    status_code = 500
    code = "internal_error"


class CommandNotFound(CommandAPIError):
    """Raised when no command matches the requested id."""
    status_code = 404
    code = "not_found"

    def __init__(self, command_id: int):
        super().__init__(f"Command {command_id} not found")
        self.command_id = command_id


class BadRequest(CommandAPIError):
    """Raised when a create fails at the database or an update's ids disagree."""
    status_code = 400
    code = "bad_request"
