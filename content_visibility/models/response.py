"""Response envelopes for visibility API endpoints."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .visibility import ContentKind, VisibilityErrorCode, VisibilityOutcome


class VisibilityChangeResponse(BaseModel):
    """Body returned by a successful hide or unhide.

    Also carries a kind-specific id key, e.g. ``recipe_id`` or ``cuisine_id``.
    """

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "success": True,
                "kind": "recipe",
                "type": "hidden",
                "changed": True,
                "hidden_at": "2024-05-01T12:00:00Z",
                "recipe_id": 7,
            }
        },
    )

    success: bool = Field(True, description="Always true on a 2xx response")
    kind: ContentKind = Field(..., description="Kind of content affected")
    type: Literal["hidden", "unhidden"] = Field(
        ..., description="Which transition was requested"
    )
    changed: bool = Field(
        ..., description="False when unhide found nothing to clear"
    )
    hidden_at: Optional[datetime] = Field(
        None, description="When the item was hidden (hide only)"
    )

    @classmethod
    def from_outcome(cls, outcome: VisibilityOutcome) -> "VisibilityChangeResponse":
        """Shape the body for the content kind of the outcome."""
        id_key = f"{outcome.kind.value}_id"
        return cls.model_validate(
            {
                "success": True,
                "kind": outcome.kind,
                "type": outcome.action,
                "changed": outcome.changed,
                "hidden_at": outcome.hidden_at,
                id_key: outcome.ref.id,
            }
        )


class VisibilityStatusResponse(BaseModel):
    """Whether one item is hidden for the caller."""

    kind: ContentKind
    content_id: int = Field(..., ge=1)
    hidden: bool


class HiddenContentResponse(BaseModel):
    """Ids of one content kind the caller has hidden, newest first."""

    kind: ContentKind
    count: int = Field(..., ge=0)
    content_ids: list[int]


class ErrorResponse(BaseModel):
    """Error envelope shared by every non-2xx response."""

    message: str
    code: Optional[VisibilityErrorCode] = None
    type: Literal["error"] = "error"
    correlation_id: str = "unknown"
