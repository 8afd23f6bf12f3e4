"""Shared API request/response models.

Domain models (Registration, Event, ...) live in bootcamp.models; this module
holds HTTP layer concerns only.
"""

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict

from bootcamp.models.errors import ErrorCode, ErrorResponse

__all__ = [
    "CamelModel",
    "ErrorCode",
    "ErrorResponse",
    "IdStr",
]


def _id_to_str(value: Any) -> Any:
    # The web app sends numeric event ids
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


IdStr = Annotated[str, BeforeValidator(_id_to_str)]


class CamelModel(BaseModel):
    """Base for bodies exchanged with the web app in camelCase.

    Fields are declared in snake_case with camelCase aliases; both spellings
    are accepted on input.
    """

    model_config = ConfigDict(populate_by_name=True)
