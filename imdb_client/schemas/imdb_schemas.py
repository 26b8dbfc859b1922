from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..exceptions import ImdbApiError

T = TypeVar("T")


class StatusMessage(BaseModel):
    message: str
    status: Optional[str] = None


class ImdbErrorResponse(BaseModel):
    type: str = Field(default="", alias="@type")
    status: StatusMessage

    model_config = ConfigDict(populate_by_name=True)


class ImdbImage(BaseModel):
    url: str
    width: Optional[int] = None
    height: Optional[int] = None


class TitleDetails(BaseModel):
    tconst: str
    title: Optional[str] = None
    type: Optional[str] = None
    year: Optional[str] = None
    image: Optional[ImdbImage] = None
    rating: Optional[float] = None
    num_votes: Optional[int] = None
    genres: List[str] = []


class PersonDetails(BaseModel):
    nconst: str
    name: Optional[str] = None
    known_for: Optional[str] = None
    image: Optional[ImdbImage] = None
    bio: Optional[str] = None


SearchResult = Union[TitleDetails, PersonDetails]


class ResponseDetail(BaseModel):
    tconst: Optional[str] = None
    title: Optional[str] = None
    year: Optional[str] = None
    type: Optional[str] = None
    image: Optional[ImdbImage] = None

    model_config = ConfigDict(extra="allow")


class WrapperResponse(BaseModel):
    data: ResponseDetail
    meta: Optional[Dict[str, Any]] = Field(default=None, alias="@meta")

    model_config = ConfigDict(populate_by_name=True)


class ImdbResult(BaseModel, Generic[T]):
    """
    Outcome of a single API call.

    Either ``payload`` is set, or ``status_message`` and ``error`` are.
    Check ``has_error`` before reading the payload.
    """

    payload: Optional[T] = None
    status_message: Optional[str] = None
    error: Optional[ImdbApiError] = Field(default=None, exclude=True)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def _payload_or_status(self):
        if self.status_message is None and self.payload is None:
            raise ValueError("either payload or status_message is required")
        if self.status_message is not None and self.payload is not None:
            raise ValueError("payload and status_message are mutually exclusive")
        return self

    @classmethod
    def success(cls, payload: T) -> "ImdbResult[T]":
        return cls(payload=payload)

    @classmethod
    def failure(cls, message: str, error: ImdbApiError) -> "ImdbResult[T]":
        return cls(status_message=message, error=error)

    @property
    def has_error(self) -> bool:
        return self.status_message is not None
