from typing import List, Optional

from sqlalchemy.orm import Session

from command_api import models
from command_api.schemas import CommandSchema

# Ids are signed 64-bit integers assigned from 1 upwards
MAX_COMMAND_ID = 2**63 - 1


def list_commands(db: Session) -> List[models.Command]:
    """Return every stored command, in whatever order the database yields them."""
    return db.query(models.Command).all()


def find_command(db: Session, command_id: int) -> Optional[models.Command]:
    """Primary-key lookup; None when no row matches.

    Ids the database could never have assigned are a miss without a query,
    since drivers refuse integers wider than their column type.
    """
    if not 1 <= command_id <= MAX_COMMAND_ID:
        return None
    return db.get(models.Command, command_id)


def add_command(db: Session, payload: CommandSchema) -> models.Command:
    """Stage a new row built from the payload. The payload's id is not used."""
    entry = models.Command(
        how_to=payload.how_to,
        platform=payload.platform,
        command_line=payload.command_line,
    )
    db.add(entry)
    return entry


def replace_command(command: models.Command, payload: CommandSchema) -> models.Command:
    """Overwrite every mutable field; fields missing from the payload become null."""
    command.how_to = payload.how_to
    command.platform = payload.platform
    command.command_line = payload.command_line
    return command


def remove_command(db: Session, command: models.Command) -> None:
    db.delete(command)


def save_changes(db: Session) -> None:
    """Flush and commit pending changes.

    Instances stay readable afterwards because the session factory does not
    expire them on commit.
    """
    db.commit()
