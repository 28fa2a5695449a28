from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CommandSchema(BaseModel):
    """Wire shape of a Command; field names are camel-cased on the way in and out.

    Every field is optional: a missing ``howTo`` is only rejected by the
    database, not here.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: Optional[int] = None
    how_to: Optional[str] = None
    platform: Optional[str] = None
    command_line: Optional[str] = None


def serialize_command(command: Any) -> Dict[str, Any]:
    """Convert an ORM row to a camel-cased dict."""
    return CommandSchema.model_validate(command).model_dump(by_alias=True)
