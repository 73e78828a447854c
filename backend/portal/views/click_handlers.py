"""Click tracking endpoints."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from portal.views.helpers import client_info, json_response, parse_body
from portal.views.schemas import ClickRequest
from vault.crypto import hash_ip, hash_user_agent
from vault.dal.models import ClickEvent

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response


async def record_click(request: Request) -> Response:
    """POST /api/clicks {linkId} - record a click by the owner or a share recipient.

    IP and user agent are stored only as SHA-256 digests.
    """
    body = await parse_body(request, ClickRequest)
    link = await request.app.state.guard.actionable_link(request.user.account, body.link_id)
    client = client_info(request)
    event = ClickEvent(
        event_id=str(uuid4()),
        link_id=link.link_id,
        user_id=request.user.user_id,
        ip_hash=hash_ip(client.ip_address or ""),
        user_agent_hash=hash_user_agent(client.user_agent or ""),
        created_at=datetime.now(UTC),
    )
    await request.app.state.clicks.record_click(event)
    return json_response(event, status_code=201)


async def list_link_clicks(request: Request) -> Response:
    link = await request.app.state.guard.owned_link(request.user.account, request.path_params["link_id"])
    clicks = await request.app.state.clicks.list_for_link(link.link_id)
    return json_response(clicks)
