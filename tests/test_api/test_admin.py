"""Tests for admin dashboard and moderation endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from vivvers.models.project import Project
from vivvers.models.user import User, UserRole, UserStatus

STAFF_ID = "00000000-0000-4000-8000-00000000000a"
MEMBER_ID = "00000000-0000-4000-8000-00000000000b"


@pytest.fixture
def sign_in_as(sign_in, make_user, identity_factory):
    """Insert a user with the given role and sign in as them."""

    async def _sign_in_as(role: UserRole, id: str = STAFF_ID, username: str = "staff") -> User:
        user = await make_user(id=id, username=username, role=role)
        sign_in(identity_factory(id=id, email=f"{username}@example.com"))
        return user

    return _sign_in_as


class TestAdminGate:
    """Tests for who may reach the admin API."""

    async def test_anonymous(self, client: AsyncClient, use_db) -> None:
        """Test that signed-out callers get not_logged_in first."""
        response = await client.get("/api/admin/users")

        assert response.status_code == 401
        assert response.json()["code"] == "not_logged_in"

    async def test_plain_user(self, client: AsyncClient, use_db, sign_in_as) -> None:
        """Test that regular users get not_admin."""
        await sign_in_as(UserRole.USER)

        response = await client.get("/api/admin/users")

        assert response.status_code == 403
        data = response.json()
        assert data["code"] == "not_admin"
        assert data["error"] == "관리자 권한이 필요합니다"

    async def test_signed_in_without_record(
        self, client: AsyncClient, use_db, sign_in, identity
    ) -> None:
        """Test that an identity with no stored user counts as signed out."""
        sign_in(identity)

        response = await client.get("/api/admin/stats")

        assert response.status_code == 401

    @pytest.mark.parametrize("role", [UserRole.MODERATOR, UserRole.ADMIN])
    async def test_staff(self, client: AsyncClient, use_db, sign_in_as, role: UserRole) -> None:
        """Test that moderators and admins are let in."""
        await sign_in_as(role)

        response = await client.get("/api/admin/users")

        assert response.status_code == 200


class TestAdminPage:
    """Tests for the dashboard page route."""

    async def test_anonymous_redirects_to_signin(self, client: AsyncClient, use_db) -> None:
        """Test that the sign-in redirect carries the return path."""
        response = await client.get("/admin")

        assert response.status_code == 303
        assert response.headers["location"] == "/signin?redirect=/admin"

    async def test_plain_user_redirects_to_unauthorized(
        self, client: AsyncClient, use_db, sign_in_as
    ) -> None:
        """Test that non-staff are sent to the unauthorized page."""
        await sign_in_as(UserRole.USER)

        response = await client.get("/admin")

        assert response.status_code == 303
        assert response.headers["location"] == "/unauthorized"

    async def test_dashboard(self, client: AsyncClient, use_db, sign_in_as, make_user) -> None:
        """Test the dashboard summary for staff."""
        await sign_in_as(UserRole.MODERATOR)
        await make_user(id=MEMBER_ID, username="member", status=UserStatus.SUSPENDED)

        response = await client.get("/admin")

        assert response.status_code == 200
        data = response.json()
        assert data["viewer"] == "staff"
        assert data["role"] == "moderator"
        assert data["stats"]["total_users"] == 2
        assert data["stats"]["suspended_users"] == 1
        assert data["stats"]["new_users_this_week"] == 2
        assert len(data["recent_users"]) == 2


class TestUserModeration:
    """Tests for changing users' status, role and notes."""

    async def test_list_with_filters(
        self, client: AsyncClient, use_db, sign_in_as, make_user, make_project
    ) -> None:
        """Test the user table with project counts."""
        await sign_in_as(UserRole.ADMIN)
        await make_user(id=MEMBER_ID, username="member")
        await make_project(author_id=MEMBER_ID)

        response = await client.get("/api/admin/users", params={"search": "MEM"})

        [row] = response.json()
        assert row["username"] == "member"
        assert row["project_count"] == 1
        assert row["role"] == "user"
        assert row["last_active"] is not None

        response = await client.get("/api/admin/users", params={"role": "admin"})
        assert [r["username"] for r in response.json()] == ["staff"]

    async def test_suspend_user(
        self, client: AsyncClient, use_db, sign_in_as, make_user
    ) -> None:
        """Test that moderators can suspend users."""
        await sign_in_as(UserRole.MODERATOR)
        member = await make_user(id=MEMBER_ID, username="member")

        response = await client.patch(
            f"/api/admin/users/{MEMBER_ID}/status", json={"status": "suspended"}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "사용자 상태가 변경되었습니다"}
        await use_db.refresh(member)
        assert member.status == UserStatus.SUSPENDED

    async def test_cannot_change_own_status(
        self, client: AsyncClient, use_db, sign_in_as
    ) -> None:
        """Test that staff cannot suspend themselves."""
        await sign_in_as(UserRole.ADMIN)

        response = await client.patch(
            f"/api/admin/users/{STAFF_ID}/status", json={"status": "suspended"}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "invalid_action"
        assert data["error"] == "자신의 상태는 변경할 수 없습니다"

    async def test_unknown_user(self, client: AsyncClient, use_db, sign_in_as) -> None:
        """Test moderating a user that does not exist."""
        await sign_in_as(UserRole.ADMIN)

        response = await client.patch(
            "/api/admin/users/missing/status", json={"status": "suspended"}
        )

        assert response.status_code == 404
        assert response.json()["code"] == "user_not_found"

    async def test_role_change_requires_admin(
        self, client: AsyncClient, use_db, sign_in_as, make_user
    ) -> None:
        """Test that moderators cannot change roles."""
        await sign_in_as(UserRole.MODERATOR)
        await make_user(id=MEMBER_ID, username="member")

        response = await client.patch(
            f"/api/admin/users/{MEMBER_ID}/role", json={"role": "moderator"}
        )

        assert response.status_code == 403
        assert response.json()["code"] == "not_admin"

    async def test_admin_changes_role(
        self, client: AsyncClient, use_db, sign_in_as, make_user
    ) -> None:
        """Test that admins can promote users."""
        await sign_in_as(UserRole.ADMIN)
        await make_user(id=MEMBER_ID, username="member")

        response = await client.patch(
            f"/api/admin/users/{MEMBER_ID}/role", json={"role": "moderator"}
        )

        assert response.status_code == 200
        result = await use_db.execute(select(User.role).where(User.id == MEMBER_ID))
        assert result.scalar_one() == UserRole.MODERATOR

    async def test_cannot_change_own_role(
        self, client: AsyncClient, use_db, sign_in_as
    ) -> None:
        """Test that admins cannot demote themselves."""
        await sign_in_as(UserRole.ADMIN)

        response = await client.patch(f"/api/admin/users/{STAFF_ID}/role", json={"role": "user"})

        assert response.status_code == 400
        assert response.json()["error"] == "자신의 역할은 변경할 수 없습니다"

    async def test_invalid_role(self, client: AsyncClient, use_db, sign_in_as) -> None:
        """Test that unknown roles are rejected by the schema."""
        await sign_in_as(UserRole.ADMIN)

        response = await client.patch(
            f"/api/admin/users/{MEMBER_ID}/role", json={"role": "superuser"}
        )

        assert response.status_code == 422

    async def test_verification_and_notes(
        self, client: AsyncClient, use_db, sign_in_as, make_user
    ) -> None:
        """Test the verification flag and staff notes."""
        await sign_in_as(UserRole.MODERATOR)
        await make_user(id=MEMBER_ID, username="member")

        verified = await client.patch(
            f"/api/admin/users/{MEMBER_ID}/verification", json={"verified": True}
        )
        notes = await client.patch(
            f"/api/admin/users/{MEMBER_ID}/notes", json={"admin_notes": "spam warning"}
        )

        assert verified.status_code == 200
        assert notes.status_code == 200
        result = await use_db.execute(
            select(User.verified, User.admin_notes).where(User.id == MEMBER_ID)
        )
        assert result.one() == (True, "spam warning")


class TestProjectModeration:
    """Tests for staff actions on projects."""

    async def test_list_projects(
        self, client: AsyncClient, use_db, sign_in_as, make_user, make_project
    ) -> None:
        """Test the project table with comment counts."""
        await sign_in_as(UserRole.MODERATOR)
        await make_user(id=MEMBER_ID, username="member")
        await make_project(author_id=MEMBER_ID, title="Member Project")

        response = await client.get("/api/admin/projects")

        [row] = response.json()
        assert row["title"] == "Member Project"
        assert row["author_username"] == "member"
        assert row["comment_count"] == 0

    async def test_feature_project(
        self, client: AsyncClient, use_db, sign_in_as, make_user, make_project
    ) -> None:
        """Test featuring a project."""
        await sign_in_as(UserRole.MODERATOR)
        await make_user(id=MEMBER_ID, username="member")
        project = await make_project(author_id=MEMBER_ID)

        response = await client.patch(
            f"/api/admin/projects/{project.id}/featured", json={"featured": True}
        )

        assert response.status_code == 200
        result = await use_db.execute(select(Project.featured).where(Project.id == project.id))
        assert result.scalar_one() is True

    async def test_remove_any_project(
        self, client: AsyncClient, use_db, sign_in_as, make_user, make_project
    ) -> None:
        """Test that staff can remove projects they do not own."""
        await sign_in_as(UserRole.ADMIN)
        await make_user(id=MEMBER_ID, username="member")
        project = await make_project(author_id=MEMBER_ID)

        response = await client.delete(f"/api/admin/projects/{project.id}")

        assert response.status_code == 200
        result = await use_db.execute(select(Project.id).where(Project.id == project.id))
        assert result.scalar_one_or_none() is None

    async def test_remove_missing_project(self, client: AsyncClient, use_db, sign_in_as) -> None:
        """Test removing a project that does not exist."""
        await sign_in_as(UserRole.ADMIN)

        response = await client.delete("/api/admin/projects/missing")

        assert response.status_code == 404
