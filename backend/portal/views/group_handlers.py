"""Group endpoints: CRUD, invitations, and the member list."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.responses import JSONResponse

from portal.views.helpers import json_response, parse_body
from portal.views.schemas import GroupCreateRequest, GroupUpdateRequest, InviteRequest
from vault.crypto import generate_invite_code
from vault.dal.models import Group, GroupMembership, MemberRole, Notification, NotificationType
from vault.validators import normalize_email

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

logger = structlog.get_logger()

EDIT_DENIED = "Only group owner can edit group"
DELETE_DENIED = "Only group owner can delete group"
INVITE_DENIED = "Only group owner can invite members"
MEMBERS_DENIED = "Access denied. Only group members can view the member list."


async def list_groups(request: Request) -> Response:
    groups = await request.app.state.groups.list_groups_for_user(request.user.user_id)
    return json_response(groups)


async def get_group(request: Request) -> Response:
    group = await request.app.state.guard.member_group(request.user.account, request.path_params["group_id"])
    return json_response(group)


async def create_group(request: Request) -> Response:
    """POST /api/groups - create a group with the caller as its owner member."""
    body = await parse_body(request, GroupCreateRequest)
    now = datetime.now(UTC)
    group = Group(
        group_id=str(uuid4()),
        owner_id=request.user.user_id,
        invite_code=generate_invite_code(),
        created_at=now,
        updated_at=now,
        **body.model_dump(),
    )
    owner = GroupMembership(
        membership_id=str(uuid4()),
        group_id=group.group_id,
        user_id=group.owner_id,
        role=MemberRole.OWNER,
        joined_at=now,
    )
    await request.app.state.groups.create_group(group, owner)
    return json_response(group, status_code=201)


async def update_group(request: Request) -> Response:
    group = await request.app.state.guard.owned_group(
        request.user.account,
        request.path_params["group_id"],
        EDIT_DENIED,
    )
    body = await parse_body(request, GroupUpdateRequest)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    updated = await request.app.state.groups.update_group(group.group_id, **changes)
    if updated is None:  # pragma: no cover - deleted concurrently
        return JSONResponse({"error": "Group not found"}, status_code=404)
    return json_response(updated)


async def delete_group(request: Request) -> Response:
    group = await request.app.state.guard.owned_group(
        request.user.account,
        request.path_params["group_id"],
        DELETE_DENIED,
    )
    await request.app.state.groups.delete_group(group.group_id)
    return JSONResponse({"success": True})


async def invite_members(request: Request) -> Response:
    """POST /api/groups/{group_id}/invite {emails} - add registered users and notify them.

    Emails without an account are counted but otherwise ignored; sending
    invitation mail is outside this service.
    """
    group = await request.app.state.guard.owned_group(
        request.user.account,
        request.path_params["group_id"],
        INVITE_DENIED,
    )
    body = await parse_body(request, InviteRequest)
    now = datetime.now(UTC)
    notifications = []
    for email in body.emails:
        user = await request.app.state.users.get_by_email(normalize_email(email))
        if user is None:
            continue
        membership = GroupMembership(
            membership_id=str(uuid4()),
            group_id=group.group_id,
            user_id=user.user_id,
            role=MemberRole.MEMBER,
            joined_at=now,
        )
        if not await request.app.state.groups.add_member(membership):
            continue
        notifications.append(
            Notification(
                notification_id=str(uuid4()),
                user_id=user.user_id,
                type=NotificationType.GROUP_INVITE,
                title="Added to group",
                message=f"You were added to {group.name}",
                group_id=group.group_id,
                created_at=now,
            ),
        )
    await request.app.state.notifications.create_notifications(notifications)
    logger.info("group invite processed", group_id=group.group_id, added=len(notifications))
    return JSONResponse({"success": True, "invitedCount": len(body.emails)})


async def list_members(request: Request) -> Response:
    group = await request.app.state.guard.member_group(
        request.user.account,
        request.path_params["group_id"],
        MEMBERS_DENIED,
    )
    members = await request.app.state.groups.get_group_members(group.group_id)
    return json_response(members)
