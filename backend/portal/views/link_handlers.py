"""Link endpoints. Every per-link route goes through the authorization guard first."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from starlette.responses import JSONResponse

from portal.views.helpers import json_response, parse_body
from portal.views.schemas import ArchiveRequest, LinkCreateRequest, LinkUpdateRequest
from vault.dal.models import Link

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response


async def list_links(request: Request) -> Response:
    links = await request.app.state.links.list_for_owner(request.user.user_id)
    return json_response(links)


async def get_link(request: Request) -> Response:
    link = await request.app.state.guard.owned_link(request.user.account, request.path_params["link_id"])
    return json_response(link)


async def create_link(request: Request) -> Response:
    body = await parse_body(request, LinkCreateRequest)
    now = datetime.now(UTC)
    link = Link(
        link_id=str(uuid4()),
        owner_id=request.user.user_id,
        created_at=now,
        updated_at=now,
        **body.model_dump(),
    )
    await request.app.state.links.create_link(link)
    return json_response(link, status_code=201)


async def update_link(request: Request) -> Response:
    link = await request.app.state.guard.owned_link(request.user.account, request.path_params["link_id"])
    body = await parse_body(request, LinkUpdateRequest)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    updated = await request.app.state.links.update_link(link.link_id, **changes)
    if updated is None:  # pragma: no cover - deleted concurrently
        return JSONResponse({"error": "Link not found"}, status_code=404)
    return json_response(updated)


async def archive_link(request: Request) -> Response:
    """PATCH /api/links/{link_id}/archive {archive?} - archive or restore a link."""
    link = await request.app.state.guard.owned_link(request.user.account, request.path_params["link_id"])
    body = await parse_body(request, ArchiveRequest)
    await request.app.state.links.update_link(link.link_id, is_archived=body.archive)
    return JSONResponse({"success": True})


async def delete_link(request: Request) -> Response:
    link = await request.app.state.guard.owned_link(request.user.account, request.path_params["link_id"])
    await request.app.state.links.delete_link(link.link_id)
    return JSONResponse({"success": True})
