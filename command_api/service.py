import logging
from typing import List, MutableMapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from command_api import crud, models
from command_api.exceptions import BadRequest, CommandNotFound
from command_api.schemas import CommandSchema

logger = logging.getLogger(__name__)

ENVIRONMENT_HEADER = "Environment"


class CommandService:
    """CRUD operations on commands for the duration of one request.

    Build a new instance per request around that request's session; the
    service keeps no state of its own besides the session and the name of
    the runtime environment.
    """

    def __init__(self, db: Session, environment_name: str):
        self.db = db
        self.environment_name = environment_name

    def list_commands(
        self, headers: Optional[MutableMapping[str, str]] = None
    ) -> List[models.Command]:
        """Return all commands.

        When response headers are supplied, the runtime environment name is
        added to them as a diagnostic.
        """
        if headers is not None:
            headers[ENVIRONMENT_HEADER] = self.environment_name
        return crud.list_commands(self.db)

    def get_command(self, command_id: int) -> models.Command:
        command = crud.find_command(self.db, command_id)
        if command is None:
            logger.debug("Command %s not found", command_id)
            raise CommandNotFound(command_id)
        return command

    def create_command(self, payload: CommandSchema) -> models.Command:
        """Insert a new command and return it with its assigned id.

        Any database failure is reported to the caller as a BadRequest; the
        real cause only reaches the log.
        """
        command = crud.add_command(self.db, payload)
        try:
            crud.save_changes(self.db)
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Rejected command payload: %s", e.orig)
            raise BadRequest("Command could not be saved") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Database error while creating command")
            raise BadRequest("Command could not be saved") from e

        logger.info("Created command %s", command.id)
        return command

    def update_command(self, command_id: int, payload: CommandSchema) -> None:
        """Replace every field of an existing command with the payload's values."""
        if payload.id != command_id:
            raise BadRequest(
                f"Path id {command_id} does not match body id {payload.id}"
            )

        command = self.get_command(command_id)
        crud.replace_command(command, payload)
        crud.save_changes(self.db)
        logger.info("Updated command %s", command_id)

    def delete_command(self, command_id: int) -> models.Command:
        """Remove a command and return it as it was before deletion."""
        command = self.get_command(command_id)
        crud.remove_command(self.db, command)
        crud.save_changes(self.db)
        logger.info("Deleted command %s", command_id)
        return command
