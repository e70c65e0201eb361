from __future__ import annotations

import json
from typing import Literal, Optional, TypeAlias, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import T_DRAWING_COMPLETE


class DrawingComplete(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    type: Literal["drawing_complete"]
    post_id: str = Field("", alias="postId")
    community_id: str = Field("", alias="communityId")
    image_url: str = Field("", alias="imageUrl")

    @field_validator("post_id", "community_id", "image_url", mode="before")
    @classmethod
    def _null_as_empty(cls, v: object) -> object:
        return "" if v is None else v


class Ignored(BaseModel):
    """No-op variant: anything the native side does not act on."""

    type: Optional[str] = None
    reason: str = ""


BridgeMessage: TypeAlias = Union[DrawingComplete, Ignored]


def decode_bridge_message(raw: str | bytes) -> BridgeMessage:
    """
    Decode one inbound channel payload.

    Never raises: unknown types, non-object JSON and garbage all come back as
    `Ignored` so newer page builds can add message types freely.
    """
    try:
        obj = json.loads(raw)
    except (TypeError, ValueError):
        return Ignored(reason="unparseable")
    if not isinstance(obj, dict):
        return Ignored(reason="not an object")

    t = obj.get("type")
    t_str = t if isinstance(t, str) else None
    if t != T_DRAWING_COMPLETE:
        return Ignored(type=t_str, reason="unhandled type")

    try:
        return DrawingComplete.model_validate(obj)
    except ValidationError as e:
        return Ignored(type=t_str, reason=f"invalid payload: {e.error_count()} error(s)")
