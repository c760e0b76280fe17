"""Tests for the share link and join request API endpoints.

Create returns the secret once; list never exposes token hashes; redeem
maps rejections onto REVOKED, EXPIRED, EXHAUSTED and ALREADY_USED (410),
DOMAIN_RESTRICTED (403) and NOT_FOUND (404).
"""

import uuid

import pytest
from httpx import AsyncClient

from boardshare.core.config import settings
from boardshare.core.rate_limiting import limiter
from boardshare.services.join_coordinator import JoinCoordinator
from boardshare.services.share_link_types import OutcomeKind
from tests.conftest import BOARD_ID, BOARD_NAME, OWNER_NAME

_SHARE_LINKS_URL = f"/api/v1/boards/{BOARD_ID}/share-links"
_JOIN_REQUESTS_URL = f"/api/v1/boards/{BOARD_ID}/join-requests"
_VALIDATE_URL = "/api/v1/share-links/validate"
_REDEEM_URL = "/api/v1/share-links/redeem"


async def _create(client: AsyncClient, **body) -> dict:
    response = await client.post(_SHARE_LINKS_URL, json=body)
    assert response.status_code == 201, response.text
    return response.json()["data"]


# =============================================================================
# Create and list
# =============================================================================


class TestCreateShareLink:
    """POST /boards/{board_id}/share-links."""

    async def test_create_returns_token_and_url(self, client: AsyncClient):
        """The plaintext token and share URL come back exactly once."""
        data = await _create(client, access_type="join_on_click", role_on_join="member")

        assert len(data["token"]) == 64
        assert data["url"].endswith(f"/share?token={data['token']}")
        link = data["share_link"]
        assert link["status"] == "active"
        assert link["uses"] == 0
        assert link["role_on_join"] == "member"
        assert "token_hash" not in link

    async def test_defaults(self, client: AsyncClient):
        """An empty body creates a view-only viewer link without expiry."""
        link = (await _create(client))["share_link"]

        assert link["access_type"] == "view_only"
        assert link["role_on_join"] == "viewer"
        assert link["expires_at"] is None
        assert link["max_uses"] is None

    async def test_unknown_access_type_is_400(self, client: AsyncClient):
        """Unknown enum values are validation errors."""
        response = await client.post(_SHARE_LINKS_URL, json={"access_type": "public"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_zero_max_uses_is_400(self, client: AsyncClient):
        """max_uses must be positive."""
        response = await client.post(_SHARE_LINKS_URL, json={"max_uses": 0})

        assert response.status_code == 400

    async def test_unknown_field_is_400(self, client: AsyncClient):
        """Request bodies forbid extra fields."""
        response = await client.post(_SHARE_LINKS_URL, json={"token_hash": "x"})

        assert response.status_code == 400

    async def test_outsider_is_403(self, guest_client: AsyncClient):
        """Users without a board role cannot share the board."""
        response = await guest_client.post(_SHARE_LINKS_URL, json={})

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    async def test_unauthenticated_is_401(self, unauthenticated_client: AsyncClient):
        """Creating requires a session."""
        response = await unauthenticated_client.post(_SHARE_LINKS_URL, json={})

        assert response.status_code == 401


class TestListShareLinks:
    """GET /boards/{board_id}/share-links."""

    async def test_lists_newest_first_without_hashes(self, client: AsyncClient):
        """Links come back newest first with derived status and no hash."""
        first = await _create(client, notes="first")
        second = await _create(client, notes="second")

        response = await client.get(_SHARE_LINKS_URL)

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert [link["id"] for link in body["data"]] == [
            second["share_link"]["id"],
            first["share_link"]["id"],
        ]
        assert body["data"][0]["owner_name"] == OWNER_NAME
        assert all("token_hash" not in link for link in body["data"])
        assert first["token"] not in response.text

    async def test_outsider_is_403(self, guest_client: AsyncClient):
        """Outsiders cannot list links."""
        response = await guest_client.get(_SHARE_LINKS_URL)

        assert response.status_code == 403


# =============================================================================
# Validate
# =============================================================================


class TestValidateShareLink:
    """GET /share-links/validate."""

    async def test_anonymous_preview(
        self, client: AsyncClient, unauthenticated_client: AsyncClient
    ):
        """Anonymous callers see board facts and null viewer fields."""
        token = (await _create(client, access_type="invite_only"))["token"]

        response = await unauthenticated_client.get(
            _VALIDATE_URL, params={"token": token}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["valid"] is True
        assert data["status"] == "active"
        assert data["board_name"] == BOARD_NAME
        assert data["owner_name"] == OWNER_NAME
        assert data["access_type"] == "invite_only"
        assert data["already_member"] is None

    async def test_member_preview(self, client: AsyncClient):
        """Signed-in members are told they already belong."""
        token = (await _create(client))["token"]

        response = await client.get(_VALIDATE_URL, params={"token": token})

        data = response.json()["data"]
        assert data["already_member"] is True
        assert data["existing_role"] == "owner"

    async def test_guest_outside_domain(
        self, client: AsyncClient, guest_client: AsyncClient
    ):
        """Guests outside the restricted domain see domain_allowed false."""
        token = (await _create(client, restrict_domain="corp.example.com"))["token"]

        response = await guest_client.get(_VALIDATE_URL, params={"token": token})

        data = response.json()["data"]
        assert data["restrict_domain"] == "@corp.example.com"
        assert data["already_member"] is False
        assert data["domain_allowed"] is False

    async def test_revoked_link_previews_as_invalid(self, client: AsyncClient):
        """Inactive links still preview, flagged invalid."""
        created = await _create(client)
        await client.post(f"/api/v1/share-links/{created['share_link']['id']}/revoke")

        response = await client.get(_VALIDATE_URL, params={"token": created["token"]})

        data = response.json()["data"]
        assert data["valid"] is False
        assert data["status"] == "revoked"

    async def test_unknown_token_is_404(self, unauthenticated_client: AsyncClient):
        """Unknown tokens are not found."""
        response = await unauthenticated_client.get(
            _VALIDATE_URL, params={"token": "ab" * 32}
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_missing_token_is_400(self, unauthenticated_client: AsyncClient):
        """The token query parameter is required."""
        response = await unauthenticated_client.get(_VALIDATE_URL)

        assert response.status_code == 400


# =============================================================================
# Redeem
# =============================================================================


class TestRedeemShareLink:
    """POST /share-links/redeem."""

    async def test_join_on_click(self, client: AsyncClient, guest_client: AsyncClient):
        """Guests join with role_on_join."""
        token = (await _create(client, access_type="join_on_click"))["token"]

        response = await guest_client.post(_REDEEM_URL, json={"token": token})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["outcome"] == "joined"
        assert data["role"] == "viewer"
        assert data["board_id"] == str(BOARD_ID)
        assert data["board_name"] == BOARD_NAME
        assert data["message"] == "You have successfully joined the board"

    async def test_second_redeem_is_already_member(
        self, client: AsyncClient, guest_client: AsyncClient
    ):
        """Redeeming again reports the existing membership."""
        token = (await _create(client))["token"]
        await guest_client.post(_REDEEM_URL, json={"token": token})

        response = await guest_client.post(_REDEEM_URL, json={"token": token})

        data = response.json()["data"]
        assert data["outcome"] == "already_member"
        assert data["message"] == "You are already a member of this board"

    async def test_invite_only_sends_request(
        self, client: AsyncClient, guest_client: AsyncClient
    ):
        """Invite-only links answer request_sent and grant nothing."""
        token = (await _create(client, access_type="invite_only"))["token"]

        response = await guest_client.post(_REDEEM_URL, json={"token": token})

        data = response.json()["data"]
        assert data["outcome"] == "request_sent"
        assert data["role"] is None

        preview = await guest_client.get(_VALIDATE_URL, params={"token": token})
        assert preview.json()["data"]["already_member"] is False

    @pytest.mark.parametrize(
        ("body", "code"),
        [
            ({"single_use": True}, "ALREADY_USED"),
            ({"max_uses": 1}, "EXHAUSTED"),
        ],
    )
    async def test_spent_link_is_410(
        self,
        client: AsyncClient,
        guest_client: AsyncClient,
        session_factory,
        board,
        body,
        code,
    ):
        """Spent links answer 410 with the board and owner names."""
        token = (await _create(client, **body))["token"]
        async with session_factory() as session:
            first = await JoinCoordinator(session).redeem(token, board.corp_guest_id)
        assert first.kind is OutcomeKind.JOINED

        response = await guest_client.post(_REDEEM_URL, json={"token": token})

        assert response.status_code == 410
        error = response.json()["error"]
        assert error["code"] == code
        assert error["details"] == [{"board_name": BOARD_NAME, "owner_name": OWNER_NAME}]

    async def test_revoked_link_is_410(
        self, client: AsyncClient, guest_client: AsyncClient
    ):
        """Revoked links answer REVOKED."""
        created = await _create(client)
        await client.post(f"/api/v1/share-links/{created['share_link']['id']}/revoke")

        response = await guest_client.post(
            _REDEEM_URL, json={"token": created["token"]}
        )

        assert response.status_code == 410
        assert response.json()["error"]["code"] == "REVOKED"
        assert response.json()["error"]["message"] == "This link has been revoked"

    async def test_custom_expiry_in_past_means_never(
        self, client: AsyncClient, guest_client: AsyncClient
    ):
        """A past custom expiry is dropped, so the link still works."""
        created = await _create(client, expires_in="2020-01-01T00:00:00Z")
        assert created["share_link"]["expires_at"] is None

        response = await guest_client.post(
            _REDEEM_URL, json={"token": created["token"]}
        )

        assert response.json()["data"]["outcome"] == "joined"

    async def test_domain_restricted_is_403(
        self, client: AsyncClient, guest_client: AsyncClient
    ):
        """Guests outside the domain get DOMAIN_RESTRICTED."""
        token = (await _create(client, restrict_domain="@corp.example.com"))["token"]

        response = await guest_client.post(_REDEEM_URL, json={"token": token})

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["code"] == "DOMAIN_RESTRICTED"
        assert "@corp.example.com" in error["message"]

    async def test_unknown_token_is_404(self, guest_client: AsyncClient):
        """Unknown tokens are not found."""
        response = await guest_client.post(_REDEEM_URL, json={"token": "cd" * 32})

        assert response.status_code == 404

    async def test_blank_token_is_400(self, guest_client: AsyncClient):
        """Whitespace-only tokens are malformed."""
        response = await guest_client.post(_REDEEM_URL, json={"token": "   "})

        assert response.status_code == 400

    async def test_unauthenticated_is_401(
        self, client: AsyncClient, unauthenticated_client: AsyncClient
    ):
        """Redeeming requires a session."""
        token = (await _create(client))["token"]

        response = await unauthenticated_client.post(
            _REDEEM_URL, json={"token": token}
        )

        assert response.status_code == 401

    async def test_rate_limited(self, client: AsyncClient, guest_client: AsyncClient):
        """The eleventh attempt within the window is throttled."""
        limiter.enabled = True
        limiter.reset()
        try:
            statuses = []
            for _ in range(11):
                response = await guest_client.post(
                    _REDEEM_URL, json={"token": "ef" * 32}
                )
                statuses.append(response.status_code)
        finally:
            limiter.reset()
            limiter.enabled = False

        assert statuses[:10] == [404] * 10
        assert statuses[10] == 429

    async def test_address_limit_spans_accounts(
        self, client: AsyncClient, guest_client: AsyncClient, monkeypatch
    ):
        """Switching accounts on one address does not reset the throttle."""
        monkeypatch.setattr(settings, "rate_limit_redeem_ip", "3/5minute")
        limiter.enabled = True
        limiter.reset()
        try:
            statuses = []
            for caller in (client, client, guest_client, guest_client):
                response = await caller.post(_REDEEM_URL, json={"token": "ef" * 32})
                statuses.append(response.status_code)
        finally:
            limiter.reset()
            limiter.enabled = False

        assert statuses == [404, 404, 404, 429]


# =============================================================================
# Revoke
# =============================================================================


class TestRevokeShareLink:
    """POST /share-links/{link_id}/revoke."""

    async def test_revoke_twice(self, client: AsyncClient):
        """The second revoke reports already_revoked instead of failing."""
        link_id = (await _create(client))["share_link"]["id"]
        url = f"/api/v1/share-links/{link_id}/revoke"

        first = await client.post(url)
        second = await client.post(url)

        assert first.status_code == 200
        assert first.json()["data"] == {
            "share_link_id": link_id,
            "revoked": True,
            "already_revoked": False,
        }
        assert second.status_code == 200
        assert second.json()["data"]["already_revoked"] is True

    async def test_outsider_gets_404(
        self, client: AsyncClient, guest_client: AsyncClient
    ):
        """Outsiders cannot tell whether a link exists."""
        link_id = (await _create(client))["share_link"]["id"]

        response = await guest_client.post(f"/api/v1/share-links/{link_id}/revoke")

        assert response.status_code == 404

    async def test_unknown_link_is_404(self, client: AsyncClient):
        """Unknown link ids are not found."""
        response = await client.post(f"/api/v1/share-links/{uuid.uuid4()}/revoke")

        assert response.status_code == 404


# =============================================================================
# Join requests
# =============================================================================


class TestJoinRequests:
    """GET /boards/{board_id}/join-requests and POST .../decision."""

    async def _request_access(
        self, client: AsyncClient, guest_client: AsyncClient, role: str = "commenter"
    ) -> str:
        token = (
            await _create(client, access_type="invite_only", role_on_join=role)
        )["token"]
        await guest_client.post(_REDEEM_URL, json={"token": token})
        listing = await client.get(_JOIN_REQUESTS_URL)
        (pending,) = listing.json()["data"]
        assert pending["user_email"] == "guest@example.com"
        assert pending["user_name"] == "Gus Guest"
        return pending["id"]

    async def test_approve(self, client: AsyncClient, guest_client: AsyncClient):
        """Approving grants the link's role and empties the queue."""
        request_id = await self._request_access(client, guest_client)

        response = await client.post(
            f"/api/v1/join-requests/{request_id}/decision",
            json={"decision": "approve"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "approved"
        assert data["role"] == "commenter"
        assert data["requester_name"] == "Gus Guest"
        assert (await client.get(_JOIN_REQUESTS_URL)).json()["count"] == 0

    async def test_reject_then_decide_again(
        self, client: AsyncClient, guest_client: AsyncClient
    ):
        """A decided request answers 409 ALREADY_HANDLED."""
        request_id = await self._request_access(client, guest_client)
        url = f"/api/v1/join-requests/{request_id}/decision"

        rejected = await client.post(url, json={"decision": "reject"})
        again = await client.post(url, json={"decision": "approve"})

        assert rejected.json()["data"]["status"] == "rejected"
        assert rejected.json()["data"]["role"] is None
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "ALREADY_HANDLED"

    async def test_invalid_decision_is_400(
        self, client: AsyncClient, guest_client: AsyncClient
    ):
        """Only approve and reject are accepted."""
        request_id = await self._request_access(client, guest_client)

        response = await client.post(
            f"/api/v1/join-requests/{request_id}/decision",
            json={"decision": "maybe"},
        )

        assert response.status_code == 400

    async def test_outsider_cannot_list(self, guest_client: AsyncClient):
        """Outsiders cannot see the queue."""
        response = await guest_client.get(_JOIN_REQUESTS_URL)

        assert response.status_code == 403
