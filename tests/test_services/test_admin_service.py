"""Tests for the admin user service."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from vivvers.errors import InvalidUserActionError, UserNotFoundError
from vivvers.models.user import User, UserRole, UserStatus, utcnow
from vivvers.services.admin import AdminUserService, UserFilters, calculate_last_active

MEMBER_ID = "00000000-0000-4000-8000-00000000000b"


class TestCalculateLastActive:
    """Tests for deriving last activity."""

    def test_latest_wins(self) -> None:
        base = datetime(2025, 1, 1, tzinfo=UTC)
        assert calculate_last_active(
            base, base + timedelta(days=2), base + timedelta(days=1)
        ) == base + timedelta(days=2)

    def test_missing_activity_is_ignored(self) -> None:
        base = datetime(2025, 1, 1, tzinfo=UTC)
        assert calculate_last_active(base, None, None) == base

    def test_naive_values_are_utc(self) -> None:
        naive = datetime(2025, 1, 2)
        aware = datetime(2025, 1, 1, tzinfo=UTC)
        assert calculate_last_active(aware, naive, None) == naive.replace(tzinfo=UTC)


class TestGetUsers:
    """Tests for the user table query."""

    async def test_filters(self, db_session, make_user, make_project) -> None:
        await make_user(role=UserRole.ADMIN)
        await make_user(id=MEMBER_ID, username="member", status=UserStatus.SUSPENDED)
        await make_project(author_id=MEMBER_ID)
        service = AdminUserService(db_session)

        suspended = await service.get_users(UserFilters(status=UserStatus.SUSPENDED))
        assert [u.username for u in suspended] == ["member"]
        assert suspended[0].project_count == 1

        admins = await service.get_users(UserFilters(role=UserRole.ADMIN))
        assert [u.username for u in admins] == ["devuser"]
        assert admins[0].project_count == 0

        assert await service.get_users(UserFilters(verified=True)) == []

    async def test_limit_and_offset(self, db_session, make_user) -> None:
        await make_user()
        await make_user(id=MEMBER_ID, username="member")
        service = AdminUserService(db_session)

        first = await service.get_users(UserFilters(limit=1))
        second = await service.get_users(UserFilters(limit=1, offset=1))

        assert len(first) == len(second) == 1
        assert first[0].id != second[0].id


class TestGetUserStats:
    """Tests for dashboard totals."""

    async def test_counts(self, db_session, make_user) -> None:
        await make_user(last_active=utcnow())
        await make_user(
            id=MEMBER_ID,
            username="member",
            status=UserStatus.SUSPENDED,
            created_at=utcnow() - timedelta(days=60),
            last_active=utcnow() - timedelta(days=45),
        )

        stats = await AdminUserService(db_session).get_user_stats()

        assert stats.total_users == 2
        assert stats.active_users == 1
        assert stats.suspended_users == 1
        assert stats.new_users_this_week == 1
        assert stats.monthly_active_users == 1


class TestModerationUpdates:
    """Tests for status, role and note changes."""

    def actor(self, id: str = "admin-id") -> MagicMock:
        mock_user = MagicMock(spec=User)
        mock_user.id = id
        mock_user.username = "admin"
        return mock_user

    async def test_update_status(self, db_session, make_user) -> None:
        await make_user(id=MEMBER_ID, username="member")

        user = await AdminUserService(db_session).update_user_status(
            self.actor(), MEMBER_ID, UserStatus.SUSPENDED
        )

        assert user.status == UserStatus.SUSPENDED

    async def test_self_status_change_rejected(self, db_session) -> None:
        with pytest.raises(InvalidUserActionError, match="자신의 상태는 변경할 수 없습니다"):
            await AdminUserService(db_session).update_user_status(
                self.actor(MEMBER_ID), MEMBER_ID, UserStatus.SUSPENDED
            )

    async def test_self_role_change_rejected(self, db_session) -> None:
        with pytest.raises(InvalidUserActionError, match="자신의 역할은 변경할 수 없습니다"):
            await AdminUserService(db_session).update_user_role(
                self.actor(MEMBER_ID), MEMBER_ID, UserRole.USER
            )

    async def test_update_role(self, db_session, make_user) -> None:
        await make_user(id=MEMBER_ID, username="member")

        user = await AdminUserService(db_session).update_user_role(
            self.actor(), MEMBER_ID, UserRole.MODERATOR
        )

        assert user.role == UserRole.MODERATOR

    async def test_unknown_user(self, db_session) -> None:
        with pytest.raises(UserNotFoundError):
            await AdminUserService(db_session).update_user_verification("missing", True)

    async def test_notes(self, db_session, make_user) -> None:
        await make_user(id=MEMBER_ID, username="member")

        user = await AdminUserService(db_session).update_admin_notes(MEMBER_ID, "watch")

        assert user.admin_notes == "watch"
