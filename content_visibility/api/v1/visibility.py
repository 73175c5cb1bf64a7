"""Content visibility API endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends

from content_visibility.api.v1.dependencies import get_principal, get_visibility_engine
from content_visibility.models.response import (
    ErrorResponse,
    HiddenContentResponse,
    VisibilityChangeResponse,
    VisibilityStatusResponse,
)
from content_visibility.models.visibility import ContentKind
from content_visibility.visibility.engine import VisibilityEngine
from content_visibility.visibility.validator import parse_kind, validate

router = APIRouter(tags=["visibility"])

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "INVALID_INPUT or ALREADY_HIDDEN"},
    401: {"model": ErrorResponse, "description": "UNAUTHORIZED"},
    404: {"model": ErrorResponse, "description": "NOT_FOUND"},
    500: {"model": ErrorResponse, "description": "Internal error"},
}


async def _hide(
    engine: VisibilityEngine, principal: Optional[str], kind: str, content_id: str
) -> VisibilityChangeResponse:
    ref = validate(kind, content_id)
    outcome = await engine.hide(principal, ref)
    return VisibilityChangeResponse.from_outcome(outcome)


async def _unhide(
    engine: VisibilityEngine, principal: Optional[str], kind: str, content_id: str
) -> VisibilityChangeResponse:
    ref = validate(kind, content_id)
    outcome = await engine.unhide(principal, ref)
    return VisibilityChangeResponse.from_outcome(outcome)


@router.post(
    "/content/{kind}/{content_id}/hide",
    response_model=VisibilityChangeResponse,
    responses=ERROR_RESPONSES,
)
async def hide_content(
    kind: str,
    content_id: str,
    principal: Optional[str] = Depends(get_principal),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> VisibilityChangeResponse:
    """
    Hide a content item from the caller's own views.

    The shared item is untouched. Hiding an item that is already hidden
    returns 400 with code ALREADY_HIDDEN; a client retrying after a lost
    response should treat that as success.
    """
    return await _hide(engine, principal, kind, content_id)


@router.post(
    "/content/{kind}/{content_id}/unhide",
    response_model=VisibilityChangeResponse,
    responses=ERROR_RESPONSES,
)
async def unhide_content(
    kind: str,
    content_id: str,
    principal: Optional[str] = Depends(get_principal),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> VisibilityChangeResponse:
    """
    Make a hidden content item visible again.

    Safe to retry: unhiding a visible item succeeds with ``changed`` false.
    """
    return await _unhide(engine, principal, kind, content_id)


@router.get(
    "/content/{kind}/{content_id}/visibility",
    response_model=VisibilityStatusResponse,
    responses=ERROR_RESPONSES,
)
async def get_content_visibility(
    kind: str,
    content_id: str,
    principal: Optional[str] = Depends(get_principal),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> VisibilityStatusResponse:
    """Report whether an item is hidden for the caller."""
    ref = validate(kind, content_id)
    hidden = await engine.is_hidden(principal, ref)
    return VisibilityStatusResponse(kind=ref.kind, content_id=ref.id, hidden=hidden)


@router.get(
    "/content/{kind}/hidden",
    response_model=HiddenContentResponse,
    responses=ERROR_RESPONSES,
)
async def list_hidden_content(
    kind: str,
    principal: Optional[str] = Depends(get_principal),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> HiddenContentResponse:
    """
    List the ids of one content kind the caller has hidden.

    Listing endpoints use this to drop hidden items, newest hides first.
    """
    content_kind = parse_kind(kind)
    ids = await engine.hidden_ids(principal, content_kind)
    return HiddenContentResponse(kind=content_kind, count=len(ids), content_ids=ids)


# Paths used by existing clients


@router.post(
    "/cultural-cuisines/{content_id}/hide",
    response_model=VisibilityChangeResponse,
    responses=ERROR_RESPONSES,
    include_in_schema=False,
)
async def hide_cuisine(
    content_id: str,
    principal: Optional[str] = Depends(get_principal),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> VisibilityChangeResponse:
    return await _hide(engine, principal, ContentKind.CUISINE.value, content_id)


@router.post(
    "/cultural-cuisines/{content_id}/unhide",
    response_model=VisibilityChangeResponse,
    responses=ERROR_RESPONSES,
    include_in_schema=False,
)
async def unhide_cuisine(
    content_id: str,
    principal: Optional[str] = Depends(get_principal),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> VisibilityChangeResponse:
    return await _unhide(engine, principal, ContentKind.CUISINE.value, content_id)


@router.post(
    "/cultural-recipes/{content_id}/hide",
    response_model=VisibilityChangeResponse,
    responses=ERROR_RESPONSES,
    include_in_schema=False,
)
async def hide_recipe(
    content_id: str,
    principal: Optional[str] = Depends(get_principal),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> VisibilityChangeResponse:
    return await _hide(engine, principal, ContentKind.RECIPE.value, content_id)


@router.post(
    "/cultural-recipes/{content_id}/unhide",
    response_model=VisibilityChangeResponse,
    responses=ERROR_RESPONSES,
    include_in_schema=False,
)
async def unhide_recipe(
    content_id: str,
    principal: Optional[str] = Depends(get_principal),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> VisibilityChangeResponse:
    return await _unhide(engine, principal, ContentKind.RECIPE.value, content_id)
