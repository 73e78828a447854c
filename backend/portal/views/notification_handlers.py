"""Notification endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.responses import JSONResponse

from portal.views.helpers import json_response
from vault.errors import ResourceNotFound

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response


async def list_notifications(request: Request) -> Response:
    notifications = await request.app.state.notifications.list_for_user(request.user.user_id)
    return json_response(notifications)


async def mark_notification_read(request: Request) -> Response:
    """PATCH /api/notifications/{notification_id}/read - only the recipient may mark it."""
    marked = await request.app.state.notifications.mark_read(
        request.path_params["notification_id"],
        request.user.user_id,
    )
    if not marked:
        raise ResourceNotFound("Notification not found")
    return JSONResponse({"success": True})
