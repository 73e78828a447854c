"""Integration tests for links, groups, shares, clicks, and notifications under the authorization guard."""

from __future__ import annotations

import pytest

LINK = {
    "title": "Chase Sapphire Preferred",
    "url": "https://refer.example.com/alice-123",
    "category": "credit_card",
    "institution": "Chase",
    "bonusValue": "60,000 points",
    "notes": "Spend $4k in 3 months",
}


@pytest.fixture
def alice(signed_in):
    return signed_in("alice@example.com", firstName="Alice")


@pytest.fixture
def bob(signed_in):
    return signed_in("bob@example.com", firstName="Bob")


@pytest.fixture
def carol(signed_in):
    return signed_in("carol@example.com", firstName="Carol")


@pytest.fixture
def link_id(alice) -> str:
    response = alice.post("/api/links", json=LINK)
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def group_id(alice, bob) -> str:
    response = alice.post("/api/groups", json={"name": "Family", "type": "family"})
    assert response.status_code == 201
    group_id = response.json()["id"]
    invite = alice.post(f"/api/groups/{group_id}/invite", json={"emails": ["bob@example.com", "dave@example.com"]})
    assert invite.json() == {"success": True, "invitedCount": 2}
    return group_id


class TestLinks:
    def test_create_and_list(self, alice, link_id):
        links = alice.get("/api/links").json()

        assert [link["id"] for link in links] == [link_id]
        assert links[0]["url"] == LINK["url"]
        assert links[0]["bonusValue"] == "60,000 points"
        assert links[0]["clickCount"] == 0
        assert links[0]["ownerId"] == alice.get("/api/auth/user").json()["id"]

    def test_url_is_encrypted_at_rest(self, app, link_id):
        (raw,) = app.state.db.connection.execute("SELECT data FROM links WHERE id = ?", (link_id,)).fetchone()

        assert "refer.example.com" not in raw

    def test_invalid_url(self, alice):
        response = alice.post("/api/links", json={**LINK, "url": "javascript:alert(1)"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid link data"

    def test_links_are_private_to_owner(self, bob, link_id):
        assert bob.get("/api/links").json() == []
        for method in ("GET", "PATCH", "DELETE"):
            response = bob.request(method, f"/api/links/{link_id}", json={"title": "mine"})
            assert response.status_code == 403, method
            assert response.json() == {"error": "Access denied"}

    def test_missing_link(self, alice):
        response = alice.get("/api/links/missing")

        assert response.status_code == 404
        assert response.json() == {"error": "Link not found"}

    def test_partial_update(self, alice, link_id):
        response = alice.patch(f"/api/links/{link_id}", json={"title": "Sapphire Reserve"})

        assert response.status_code == 200
        assert response.json()["title"] == "Sapphire Reserve"
        assert response.json()["url"] == LINK["url"]

    def test_archive_and_restore(self, alice, link_id):
        assert alice.patch(f"/api/links/{link_id}/archive", json={}).json() == {"success": True}
        assert alice.get(f"/api/links/{link_id}").json()["isArchived"] is True

        alice.patch(f"/api/links/{link_id}/archive", json={"archive": False})
        assert alice.get(f"/api/links/{link_id}").json()["isArchived"] is False

    def test_delete(self, alice, link_id):
        assert alice.delete(f"/api/links/{link_id}").json() == {"success": True}
        assert alice.get(f"/api/links/{link_id}").status_code == 404


class TestGroups:
    def test_invite_adds_registered_users(self, alice, bob, group_id):
        members = alice.get(f"/api/groups/{group_id}/members").json()

        assert sorted(m["role"] for m in members) == ["member", "owner"]
        assert [g["id"] for g in bob.get("/api/groups").json()] == [group_id]

    def test_invitee_is_notified(self, bob, group_id):
        (note,) = bob.get("/api/notifications").json()

        assert note["type"] == "group_invite"
        assert note["groupId"] == group_id
        assert note["isRead"] is False

    def test_non_member_is_denied(self, carol, group_id):
        response = carol.get(f"/api/groups/{group_id}")

        assert response.status_code == 403
        assert response.json() == {"error": "Access denied. You must be a group member to view this group."}
        assert carol.get(f"/api/groups/{group_id}/members").status_code == 403

    def test_only_owner_edits(self, alice, bob, group_id):
        denied = bob.patch(f"/api/groups/{group_id}", json={"name": "Bob's"})
        allowed = alice.patch(f"/api/groups/{group_id}", json={"description": "Close family"})

        assert denied.status_code == 403
        assert denied.json() == {"error": "Only group owner can edit group"}
        assert allowed.json()["description"] == "Close family"
        assert allowed.json()["name"] == "Family"

    def test_only_owner_invites_and_deletes(self, bob, group_id):
        invite = bob.post(f"/api/groups/{group_id}/invite", json={"emails": ["carol@example.com"]})

        assert invite.status_code == 403
        assert bob.delete(f"/api/groups/{group_id}").status_code == 403

    def test_invalid_invite(self, alice, group_id):
        response = alice.post(f"/api/groups/{group_id}/invite", json={"emails": ["not-an-email"]})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid email list"

    def test_invite_ignores_domain_case(self, alice, carol, group_id):
        invite = alice.post(f"/api/groups/{group_id}/invite", json={"emails": ["carol@EXAMPLE.com"]})

        assert invite.json() == {"success": True, "invitedCount": 1}
        assert [g["id"] for g in carol.get("/api/groups").json()] == [group_id]

    def test_non_owner_invite_denied_before_body_validation(self, bob, group_id):
        response = bob.post(f"/api/groups/{group_id}/invite", json={"emails": ["not-an-email"]})

        assert response.status_code == 403
        assert response.json() == {"error": "Only group owner can invite members"}

    def test_invite_to_missing_group_with_bad_body(self, alice):
        response = alice.post("/api/groups/no-such-group/invite", content=b"not json")

        assert response.status_code == 404
        assert response.json() == {"error": "Group not found"}


class TestSharingAndClicks:
    def test_click_requires_share(self, alice, bob, link_id, group_id):
        denied = bob.post("/api/clicks", json={"linkId": link_id})
        assert denied.status_code == 403
        assert denied.json() == {
            "error": "Access denied. You must own this link or belong to a group it's shared with.",
        }

        shared = alice.post("/api/shares", json={"linkId": link_id, "targetType": "group", "groupIds": [group_id]})
        assert shared.status_code == 201
        assert shared.json()["shares"][0]["targetId"] == group_id

        before = alice.get(f"/api/links/{link_id}").json()["clickCount"]
        click = bob.post("/api/clicks", json={"linkId": link_id})
        after = alice.get(f"/api/links/{link_id}").json()["clickCount"]

        assert click.status_code == 201
        assert after == before + 1
        assert "ipHash" in click.json()

    def test_share_notifies_other_members(self, alice, bob, link_id, group_id):
        alice.post("/api/shares", json={"linkId": link_id, "targetType": "group", "groupIds": [group_id]})

        types = [n["type"] for n in bob.get("/api/notifications").json()]

        assert "link_shared" in types
        assert alice.get("/api/notifications").json() == []

    def test_only_owner_shares(self, bob, link_id, group_id):
        response = bob.post("/api/shares", json={"linkId": link_id, "targetType": "group", "groupIds": [group_id]})

        assert response.status_code == 403
        assert response.json() == {"error": "Access denied. You must own this link to share it."}

    def test_share_requires_membership_of_every_group(self, alice, carol, link_id):
        other = carol.post("/api/groups", json={"name": "Carol's friends"}).json()["id"]

        response = alice.post("/api/shares", json={"linkId": link_id, "targetType": "group", "groupIds": [other]})

        assert response.status_code == 403
        assert response.json() == {
            "error": "Access denied. You must be a member of all target groups to share links with them.",
        }

    def test_share_to_missing_group(self, alice, link_id):
        response = alice.post("/api/shares", json={"linkId": link_id, "targetType": "group", "groupIds": ["nope"]})

        assert response.status_code == 404
        assert response.json() == {"error": "Group nope not found"}

    def test_share_missing_fields(self, alice):
        response = alice.post("/api/shares", json={"targetType": "group"})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"

    def test_contact_share_grants_clicks(self, alice, carol, link_id):
        alice.post("/api/shares", json={"linkId": link_id, "targetType": "contact", "emails": ["carol@example.com"]})

        assert carol.post("/api/clicks", json={"linkId": link_id}).status_code == 201

    def test_contact_share_ignores_domain_case(self, alice, carol, link_id):
        shared = alice.post(
            "/api/shares",
            json={"linkId": link_id, "targetType": "contact", "emails": ["carol@Example.COM"]},
        )

        assert shared.json()["shares"][0]["targetId"] == "carol@example.com"
        assert carol.post("/api/clicks", json={"linkId": link_id}).status_code == 201

    def test_owner_views_shares_and_clicks(self, alice, bob, link_id, group_id):
        alice.post("/api/shares", json={"linkId": link_id, "targetType": "group", "groupIds": [group_id]})
        alice.post("/api/clicks", json={"linkId": link_id})

        assert len(alice.get(f"/api/shares/link/{link_id}").json()) == 1
        assert len(alice.get(f"/api/clicks/link/{link_id}").json()) == 1
        assert bob.get(f"/api/shares/link/{link_id}").status_code == 403
        assert bob.get(f"/api/clicks/link/{link_id}").status_code == 403

    def test_click_without_link_id(self, alice):
        response = alice.post("/api/clicks", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "Link ID required"


class TestNotifications:
    def test_mark_read(self, bob, carol, group_id):
        (note,) = bob.get("/api/notifications").json()

        assert carol.patch(f"/api/notifications/{note['id']}/read").status_code == 404
        assert bob.patch(f"/api/notifications/{note['id']}/read").json() == {"success": True}
        assert bob.get("/api/notifications").json()[0]["isRead"] is True
