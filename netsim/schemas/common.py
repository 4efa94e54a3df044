from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


T = TypeVar("T")


class WireModel(BaseModel):
    """Base for payloads shared with clients: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        serialize_by_alias=True,
    )


class ApiResponse(BaseModel, Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


def ok(data: Any = None, *, message: Optional[str] = None) -> ApiResponse:
    return ApiResponse(success=True, data=data, message=message)
