# src/sll/schemas/validator.py
"""
Response validation for the SoundCloud api-v2 endpoints.

Each schema describes only the fields the archiver relies on; anything else
the API returns is ignored, not rejected. Leaf types are strict so that a
stringly-typed id or a missing title is reported instead of silently coerced.
"""

from __future__ import annotations
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, StrictInt, StrictStr, TypeAdapter, ValidationError, model_validator

from sll.errors import SchemaValidationError


class UserSchema(BaseModel):
    id: StrictInt
    kind: Literal["user"]
    permalink_url: StrictStr
    username: StrictStr


class TrackSchema(BaseModel):
    id: StrictInt
    kind: Literal["track"]
    permalink_url: StrictStr
    title: StrictStr
    user: UserSchema


class BasePlaylistSchema(BaseModel):
    id: StrictInt
    kind: Literal["playlist"]
    permalink_url: StrictStr
    title: StrictStr
    track_count: StrictInt = Field(ge=0)
    user: UserSchema


class TrackStubSchema(BaseModel):
    id: StrictInt


class PlaylistSchema(BasePlaylistSchema):
    tracks: List[TrackStubSchema]

    @model_validator(mode="after")
    def _tracks_within_count(self) -> "PlaylistSchema":
        if len(self.tracks) > self.track_count:
            raise ValueError(
                f"playlist lists {len(self.tracks)} tracks but track_count is {self.track_count}"
            )
        return self


class LikeSchema(BaseModel):
    created_at: StrictStr
    kind: Literal["like"]
    track: Optional[TrackSchema] = None
    playlist: Optional[BasePlaylistSchema] = None


class LikesSchema(BaseModel):
    collection: List[LikeSchema]
    next_href: Optional[StrictStr]


class UserSearchEntrySchema(BaseModel):
    id: StrictInt
    permalink: StrictStr


class UserSearchSchema(BaseModel):
    collection: List[UserSearchEntrySchema]


SCHEMAS: Dict[str, Any] = {
    "user": UserSchema,
    "track": TrackSchema,
    "tracks": List[TrackSchema],
    "basePlaylist": BasePlaylistSchema,
    "playlist": PlaylistSchema,
    "like": LikeSchema,
    "likes": LikesSchema,
    "usersearch": UserSearchSchema,
}


def _format_error(error: Dict[str, Any]) -> str:
    path = "/" + "/".join(str(p) for p in error["loc"]) if error["loc"] else "/"
    return f"{path} {error['msg']}"


class Validator:
    """
    Checks raw JSON documents against the registered schemas.

    Constructed once per run and handed to every stage that needs it.
    """

    def __init__(self, schemas: Optional[Dict[str, Any]] = None):
        self._adapters = {
            schema_id: TypeAdapter(schema)
            for schema_id, schema in (schemas or SCHEMAS).items()
        }

    @property
    def schema_ids(self) -> List[str]:
        return sorted(self._adapters)

    def _adapter(self, schema_id: str) -> TypeAdapter:
        try:
            return self._adapters[schema_id]
        except KeyError:
            raise KeyError(f"no schema registered for id {schema_id!r}") from None

    def check(self, document: Any, schema_id: str) -> List[str]:
        """
        Return every violation of ``schema_id`` found in ``document``.

        An empty list means the document is valid.
        """
        adapter = self._adapter(schema_id)
        try:
            adapter.validate_python(document)
        except ValidationError as e:
            return [_format_error(err) for err in e.errors()]
        return []

    def validate(self, document: Any, schema_id: str) -> Any:
        """
        Validate ``document`` and return it unchanged.

        Raises:
            SchemaValidationError: listing all violations when the document is invalid.
        """
        violations = self.check(document, schema_id)
        if violations:
            raise SchemaValidationError(schema_id, violations)
        return document
