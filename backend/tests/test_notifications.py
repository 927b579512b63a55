"""Tests for per-user app notifications: repository, service and API."""

from datetime import UTC, datetime
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from buildtrack.core.constants import NOTIFICATION_TYPES, TYPE_LOW_STOCK, TYPE_MAINTENANCE
from buildtrack.main import app
from buildtrack.repositories.notification_repository import AppNotificationRepository
from buildtrack.repositories.notification_rule_repository import NotificationRuleRepository
from buildtrack.repositories.user_role_repository import UserRoleRepository
from buildtrack.services.notification_service import NotificationService
from buildtrack.services.realtime import ChangeFeed
from tests.conftest import ADMIN_USER_ID, MEMBER_USER_ID

READ_AT = datetime(2026, 10, 18, 9, 30, tzinfo=UTC)
SECOND_ADMIN_ID = uuid4()


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def repo(db_session):
    return AppNotificationRepository(db_session)


@pytest.fixture
def feed():
    return MagicMock(spec=ChangeFeed)


@pytest.fixture
def service(db_session, feed):
    return NotificationService(db_session, feed=feed)


@pytest.fixture
def two_admins(db_session, admin_id):
    UserRoleRepository(db_session).grant(SECOND_ADMIN_ID)
    return admin_id, SECOND_ADMIN_ID


@pytest.fixture
def seed_notifications(repo):
    """Three notifications for the member, oldest first."""
    return [
        repo.create(user_id=MEMBER_USER_ID, type=TYPE_LOW_STOCK, title=f"Low stock {i}")
        for i in range(3)
    ]


# ── Repository Tests ──────────────────────────────────────────────


class TestAppNotificationRepository:
    def test_create(self, repo):
        n = repo.create(
            user_id=MEMBER_USER_ID,
            type=TYPE_LOW_STOCK,
            title="Low stock",
            body="Cement is at 2",
            severity="warning",
            entity_table="materials",
            entity_id="9",
            dedupe_key="low_stock:9",
        )
        assert n.id is not None
        assert n.severity == "warning"
        assert n.metadata_ == {}
        assert n.read_at is None
        assert n.archived_at is None

    def test_get_by_dedupe_key(self, repo):
        n = repo.create(user_id=MEMBER_USER_ID, type="budget", title="t", dedupe_key="k")
        assert repo.get_by_dedupe_key(MEMBER_USER_ID, "k").id == n.id
        assert repo.get_by_dedupe_key(ADMIN_USER_ID, "k") is None

    def test_get_for_user_newest_first(self, repo, seed_notifications):
        repo.create(user_id=ADMIN_USER_ID, type="budget", title="other user")
        rows = repo.get_for_user(MEMBER_USER_ID)
        assert [r.id for r in rows] == [n.id for n in reversed(seed_notifications)]

    def test_update_state_many(self, repo, seed_notifications):
        ids = [n.id for n in seed_notifications[:2]]
        rows = repo.update_state_many(MEMBER_USER_ID, ids, {"read_at": READ_AT})
        assert len(rows) == 2
        assert all(r.read_at is not None for r in rows)
        assert repo.get_by_id(seed_notifications[2].id).read_at is None

    def test_update_state_many_ignores_other_users(self, repo, seed_notifications):
        rows = repo.update_state_many(
            ADMIN_USER_ID, [seed_notifications[0].id], {"read_at": READ_AT}
        )
        assert rows == []
        assert repo.get_by_id(seed_notifications[0].id).read_at is None

    def test_update_state_many_empty(self, repo):
        assert repo.update_state_many(MEMBER_USER_ID, [], {"read_at": READ_AT}) == []


# ── Service Tests ─────────────────────────────────────────────────


class TestNotificationService:
    def test_notification_types(self):
        assert TYPE_LOW_STOCK in NOTIFICATION_TYPES
        assert TYPE_MAINTENANCE in NOTIFICATION_TYPES

    def test_create_admin_notification_fans_out(self, service, feed, two_admins):
        created = service.create_admin_notification(type="budget", title="Over budget")
        assert {n.user_id for n in created} == set(two_admins)
        assert feed.publish.call_count == 2
        args, kwargs = feed.publish.call_args
        assert args == ("notifications", "INSERT")
        assert kwargs["new"]["title"] == "Over budget"

    def test_create_admin_notification_skips_members(self, service, admin_id):
        created = service.create_admin_notification(type="budget", title="Over budget")
        assert [n.user_id for n in created] == [admin_id]

    def test_create_admin_notification_respects_disabled_rule(
        self, service, two_admins, db_session
    ):
        NotificationRuleRepository(db_session).upsert(SECOND_ADMIN_ID, "budget", False)
        created = service.create_admin_notification(type="budget", title="Over budget")
        assert [n.user_id for n in created] == [ADMIN_USER_ID]

    def test_create_admin_notification_dedupes(self, service, feed, admin_id):
        first = service.create_admin_notification(type="budget", title="t", dedupe_key="b:1")
        second = service.create_admin_notification(type="budget", title="t", dedupe_key="b:1")
        assert len(first) == 1
        assert second == []
        assert feed.publish.call_count == 1

    def test_notify_low_stock(self, service, admin_id):
        created = service.notify_low_stock(
            material_name="Cement", quantity=2, threshold=5, material_id="m-1"
        )
        n = created[0]
        assert n.type == TYPE_LOW_STOCK
        assert n.severity == "warning"
        assert n.body == "Cement is at 2 (threshold 5)."
        assert n.dedupe_key == "low_stock:m-1"
        assert n.entity_table == "materials"

        assert service.notify_low_stock(
            material_name="Cement", quantity=1, threshold=5, material_id="m-1"
        ) == []

    def test_notify_maintenance_due(self, service, admin_id):
        created = service.notify_maintenance_due(
            equipment_name="Excavator", due_date="2026-10-20", maintenance_id="mx-3"
        )
        n = created[0]
        assert n.type == TYPE_MAINTENANCE
        assert "Excavator" in n.body
        assert n.dedupe_key == "maintenance:mx-3:2026-10-20"

    def test_update_state_publishes_update(self, service, feed, seed_notifications):
        rows = service.update_state(
            MEMBER_USER_ID, [seed_notifications[0].id], {"archived_at": READ_AT}
        )
        assert len(rows) == 1
        args, kwargs = feed.publish.call_args
        assert args == ("notifications", "UPDATE")
        assert kwargs["new"]["archived_at"] is not None

    def test_set_rule_publishes(self, service, feed):
        service.set_rule(MEMBER_USER_ID, TYPE_LOW_STOCK, False, {"threshold": 3})
        assert feed.publish.call_args[0] == ("notification_rules", "INSERT")

        rule = service.set_rule(MEMBER_USER_ID, TYPE_LOW_STOCK, True)
        assert feed.publish.call_args[0] == ("notification_rules", "UPDATE")
        assert rule.enabled is True
        assert rule.config == {"threshold": 3}


# ── API Tests ─────────────────────────────────────────────────────


class TestNotificationsAPI:
    def test_list_requires_auth(self, client):
        assert client.get("/v1/notifications/").status_code == 401

    def test_list_own_notifications(self, client, member_headers, seed_notifications, repo):
        repo.create(user_id=ADMIN_USER_ID, type="budget", title="not mine")
        response = client.get("/v1/notifications/", headers=member_headers)
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 3
        assert data[0]["title"] == "Low stock 2"
        assert data[0]["metadata"] == {}

    def test_patch_single(self, client, member_headers, seed_notifications):
        target = seed_notifications[0]
        response = client.patch(
            f"/v1/notifications/{target.id}",
            json={"read_at": READ_AT.isoformat()},
            headers=member_headers,
        )
        assert response.status_code == 200
        assert response.json()["read_at"] is not None
        assert response.json()["archived_at"] is None

    def test_patch_unknown(self, client, member_headers):
        response = client.patch(
            f"/v1/notifications/{uuid4()}",
            json={"read_at": READ_AT.isoformat()},
            headers=member_headers,
        )
        assert response.status_code == 404

    def test_patch_other_users_notification(self, client, admin_headers, seed_notifications):
        response = client.patch(
            f"/v1/notifications/{seed_notifications[0].id}",
            json={"read_at": READ_AT.isoformat()},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_bulk_state(self, client, member_headers, seed_notifications, repo, db_session):
        response = client.post(
            "/v1/notifications/bulk_state",
            json={
                "ids": [str(n.id) for n in seed_notifications],
                "read_at": READ_AT.isoformat(),
            },
            headers=member_headers,
        )
        assert response.status_code == 200
        assert len(response.json()) == 3
        db_session.expire_all()
        assert all(repo.get_by_id(n.id).read_at is not None for n in seed_notifications)

    def test_bulk_state_clear(
        self, client, member_headers, seed_notifications, repo, db_session
    ):
        repo.update_state_many(MEMBER_USER_ID, [seed_notifications[0].id], {"read_at": READ_AT})
        client.post(
            "/v1/notifications/bulk_state",
            json={"ids": [str(seed_notifications[0].id)], "read_at": None},
            headers=member_headers,
        )
        db_session.expire_all()
        assert repo.get_by_id(seed_notifications[0].id).read_at is None

    def test_admin_fan_out(self, client, admin_headers):
        response = client.post(
            "/v1/notifications/admin",
            json={"type": "payment", "title": "Payment due", "severity": "critical"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json() == {"created": 1}

        listed = client.get("/v1/notifications/", headers=admin_headers).json()
        assert listed[0]["severity"] == "critical"

    def test_admin_fan_out_forbidden_for_member(self, client, member_headers):
        response = client.post(
            "/v1/notifications/admin",
            json={"type": "payment", "title": "Payment due"},
            headers=member_headers,
        )
        assert response.status_code == 403

    def test_admin_fan_out_invalid_severity(self, client, admin_headers):
        response = client.post(
            "/v1/notifications/admin",
            json={"type": "payment", "title": "Payment due", "severity": "loud"},
            headers=admin_headers,
        )
        assert response.status_code == 422
