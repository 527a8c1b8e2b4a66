import unittest
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import patch
from uuid import uuid4

from fastapi.testclient import TestClient

from cinelist.db.session import get_db
from cinelist.deps.auth import get_current_user
from cinelist.main import app
from cinelist.services.errors import (
    CannotDeleteDefaultListError,
    CannotRemoveOwnerError,
    CapacityExceededError,
    DuplicatePendingInviteError,
    ListNotFoundError,
    NotAMemberError,
    NotListOwnerError,
    StorageConflictError,
    TransientStoreError,
)

OWNER = "uid-alice"


def _list_payload(**overrides) -> dict:
    now = datetime.now(timezone.utc)
    base = {
        "id": uuid4(),
        "owner_id": OWNER,
        "name": "Horror",
        "is_public": False,
        "is_default": False,
        "cover_image_url": None,
        "role": "owner",
        "member_count": 1,
        "movie_count": 0,
        "created_at": now,
        "updated_at": now,
    }
    base.update(overrides)
    return base


def _member_payload(user_id: str, role: str) -> dict:
    return {
        "user_id": user_id,
        "role": role,
        "joined_at": datetime.now(timezone.utc),
        "username": user_id.removeprefix("uid-"),
        "display_name": None,
        "avatar_url": None,
    }


class TestListsApi(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)
        app.dependency_overrides[get_db] = lambda: iter([object()])

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def _login(self, user_id: str = OWNER) -> None:
        app.dependency_overrides[get_current_user] = lambda: SimpleNamespace(id=user_id)

    def test_create_requires_auth(self) -> None:
        response = self.client.post("/lists", json={"name": "Horror"})
        self.assertEqual(response.status_code, 401)

    def test_create_list_success(self) -> None:
        self._login()
        with patch("cinelist.api.lists.create_list", return_value=_list_payload()) as create:
            response = self.client.post("/lists", json={"name": "Horror", "is_public": True})

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["role"], "owner")
        args, kwargs = create.call_args
        self.assertEqual(args[1:], (OWNER, "Horror"))
        self.assertTrue(kwargs["is_public"])

    def test_create_list_rejects_empty_name(self) -> None:
        self._login()
        response = self.client.post("/lists", json={"name": ""})
        self.assertEqual(response.status_code, 422)

    def test_create_list_maps_value_error(self) -> None:
        self._login()
        with patch("cinelist.api.lists.create_list", side_effect=ValueError("List name must be 1-100 characters")):
            response = self.client.post("/lists", json={"name": "   "})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"]["error"]["code"], "VALIDATION_ERROR")

    def test_my_lists(self) -> None:
        self._login()
        rows = [_list_payload(is_default=True, name="Watchlist"), _list_payload(role="collaborator")]
        with patch("cinelist.api.lists.list_my_lists", return_value=rows):
            response = self.client.get("/lists")

        self.assertEqual(response.status_code, 200)
        self.assertEqual([r["role"] for r in response.json()], ["owner", "collaborator"])

    def test_default_list(self) -> None:
        self._login()
        with patch(
            "cinelist.api.lists.ensure_default_list",
            return_value=_list_payload(is_default=True, name="Watchlist"),
        ):
            response = self.client.post("/lists/default")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["is_default"])

    def test_detail_not_found(self) -> None:
        self._login()
        with patch("cinelist.api.lists.get_list_detail", side_effect=ListNotFoundError("gone")):
            response = self.client.get(f"/lists/{uuid4()}")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"]["error"]["code"], "LIST_NOT_FOUND")

    def test_detail_forbidden_for_outsider(self) -> None:
        self._login("uid-carol")
        with patch("cinelist.api.lists.get_list_detail", side_effect=NotAMemberError("no")):
            response = self.client.get(f"/lists/{uuid4()}")
        self.assertEqual(response.status_code, 403)

    def test_update_passes_only_sent_fields(self) -> None:
        self._login()
        list_id = uuid4()
        with patch(
            "cinelist.api.lists.update_list_settings",
            return_value=_list_payload(id=list_id, name="Scary"),
        ) as update:
            response = self.client.patch(f"/lists/{list_id}", json={"name": "Scary"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(update.call_args.args[3], {"name": "Scary"})

    def test_delete_success(self) -> None:
        self._login()
        with patch("cinelist.api.lists.delete_list", return_value=None):
            response = self.client.delete(f"/lists/{uuid4()}")
        self.assertEqual(response.status_code, 204)

    def test_delete_default_list_conflict(self) -> None:
        self._login()
        with patch("cinelist.api.lists.delete_list", side_effect=CannotDeleteDefaultListError("no")):
            response = self.client.delete(f"/lists/{uuid4()}")

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["detail"]["error"]["code"], "CANNOT_DELETE_DEFAULT_LIST")

    def test_delete_by_collaborator_forbidden(self) -> None:
        self._login("uid-bob")
        with patch("cinelist.api.lists.delete_list", side_effect=NotListOwnerError("no")):
            response = self.client.delete(f"/lists/{uuid4()}")
        self.assertEqual(response.status_code, 403)

    def test_members(self) -> None:
        self._login()
        members = [_member_payload(OWNER, "owner"), _member_payload("uid-bob", "collaborator")]
        with patch("cinelist.api.lists.get_members", return_value=members):
            response = self.client.get(f"/lists/{uuid4()}/members")

        self.assertEqual(response.status_code, 200)
        self.assertEqual([m["username"] for m in response.json()], ["alice", "bob"])

    def test_remove_owner_conflict(self) -> None:
        self._login()
        with patch("cinelist.api.lists.remove_collaborator", side_effect=CannotRemoveOwnerError("no")):
            response = self.client.delete(f"/lists/{uuid4()}/members/{OWNER}")
        self.assertEqual(response.status_code, 409)

    def test_leave(self) -> None:
        self._login("uid-bob")
        list_id = uuid4()
        with patch("cinelist.api.lists.leave_list", return_value=None) as leave:
            response = self.client.post(f"/lists/{list_id}/leave")

        self.assertEqual(response.status_code, 204)
        self.assertEqual(leave.call_args.args[1:], (list_id, "uid-bob"))

    def test_transfer(self) -> None:
        self._login()
        roster = [_member_payload("uid-bob", "owner"), _member_payload(OWNER, "collaborator")]
        with patch("cinelist.api.lists.transfer_ownership", return_value=roster):
            response = self.client.post(
                f"/lists/{uuid4()}/transfer", json={"new_owner_id": "uid-bob"}
            )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()[0]["role"], "owner")

    def test_transfer_storage_conflict(self) -> None:
        self._login()
        with patch("cinelist.api.lists.transfer_ownership", side_effect=StorageConflictError("busy")):
            response = self.client.post(
                f"/lists/{uuid4()}/transfer", json={"new_owner_id": "uid-bob"}
            )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["detail"]["error"]["code"], "STORAGE_CONFLICT")

    def test_invite_capacity_exceeded(self) -> None:
        self._login()
        with patch("cinelist.api.lists.create_direct_invite", side_effect=CapacityExceededError("full")):
            response = self.client.post(
                f"/lists/{uuid4()}/invites", json={"invitee_id": "uid-dave"}
            )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["detail"]["error"]["code"], "CAPACITY_EXCEEDED")

    def test_invite_duplicate(self) -> None:
        self._login()
        with patch(
            "cinelist.api.lists.create_direct_invite",
            side_effect=DuplicatePendingInviteError("pending"),
        ):
            response = self.client.post(
                f"/lists/{uuid4()}/invites", json={"invitee_id": "uid-bob"}
            )
        self.assertEqual(response.json()["detail"]["error"]["code"], "DUPLICATE_PENDING_INVITE")

    def test_create_invite_link(self) -> None:
        self._login()
        list_id = uuid4()
        now = datetime.now(timezone.utc)
        link = {
            "id": uuid4(),
            "kind": "link",
            "list_id": list_id,
            "list_owner_id": OWNER,
            "list_name": "Horror",
            "inviter_id": OWNER,
            "inviter_username": "alice",
            "invitee_id": None,
            "invitee_username": None,
            "invitee_display_name": None,
            "invitee_avatar_url": None,
            "code": "abc123",
            "status": "pending",
            "expires_at": now,
            "created_at": now,
        }
        with patch("cinelist.api.lists.create_link_invite", return_value=link):
            response = self.client.post(f"/lists/{list_id}/invite-links")

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["code"], "abc123")

    def test_pending_invites_drains_iterator(self) -> None:
        self._login()
        with patch("cinelist.api.lists.list_pending_invites", return_value=iter([])):
            response = self.client.get(f"/lists/{uuid4()}/invites")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_store_outage_is_503(self) -> None:
        self._login()
        with patch("cinelist.api.lists.get_members", side_effect=TransientStoreError("down")):
            response = self.client.get(f"/lists/{uuid4()}/members")
        self.assertEqual(response.status_code, 503)
