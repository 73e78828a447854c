"""Share endpoints: share a link with groups or contacts, list a link's shares."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from starlette.responses import JSONResponse

from portal.views.helpers import dump, json_response, parse_body
from portal.views.schemas import ShareRequest
from vault.crypto import generate_share_token
from vault.dal.models import Notification, NotificationType, Share, ShareTarget
from vault.errors import ValidationFailure
from vault.validators import normalize_email

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

SHARE_DENIED = "Access denied. You must own this link to share it."
VIEW_SHARES_DENIED = "Access denied. You must own this link to view its shares."


async def create_share(request: Request) -> Response:
    """POST /api/shares {linkId, targetType, groupIds | emails}.

    The caller must own the link and, for group shares, belong to every
    target group. Other members of each group are notified.
    """
    body = await parse_body(request, ShareRequest)
    identity = request.user.account
    state = request.app.state
    link = await state.guard.owned_link(identity, body.link_id, SHARE_DENIED)

    if body.target_type == ShareTarget.GROUP:
        if not body.group_ids:
            raise ValidationFailure("Missing required fields", {"groupIds": "At least one group is required"})
        groups = await state.guard.share_target_groups(identity, body.group_ids)
        target_ids = [group.group_id for group in groups]
    else:
        if not body.emails:
            raise ValidationFailure("Missing required fields", {"emails": "At least one email is required"})
        target_ids = [normalize_email(email) for email in body.emails]

    now = datetime.now(UTC)
    shares = []
    notifications = []
    for target_id in target_ids:
        share = Share(
            share_id=str(uuid4()),
            link_id=link.link_id,
            shared_by_id=identity.user_id,
            target_type=body.target_type,
            target_id=target_id,
            share_token=generate_share_token(),
            created_at=now,
        )
        await state.shares.create_share(share)
        shares.append(share)
        if body.target_type != ShareTarget.GROUP:
            continue
        for member in await state.groups.get_group_members(target_id):
            if member.user_id == identity.user_id:
                continue
            notifications.append(
                Notification(
                    notification_id=str(uuid4()),
                    user_id=member.user_id,
                    type=NotificationType.LINK_SHARED,
                    title="New link shared",
                    message=f"{link.title} was shared with your group",
                    link_id=link.link_id,
                    group_id=target_id,
                    created_at=now,
                ),
            )
    await state.notifications.create_notifications(notifications)
    return JSONResponse({"success": True, "shares": dump(shares)}, status_code=201)


async def list_link_shares(request: Request) -> Response:
    link = await request.app.state.guard.owned_link(
        request.user.account,
        request.path_params["link_id"],
        VIEW_SHARES_DENIED,
    )
    shares = await request.app.state.shares.get_shares_for_link(link.link_id)
    return json_response(shares)
