"""
User Registry — User Service Unit Tests
========================================

What:  Tests for UserService business rules against a mocked UserStore.
Why:   The service holds the uniqueness, existence and pagination rules.
How:   The store is an AsyncMock (no database); assertions check both the
       result and which store calls were (or were not) made.

What we test:
    ✅ Create: duplicate pre-check, store-level duplicate, store failure
    ✅ Read one: found / not found
    ✅ Read page: offset math, totalPages, search normalization, rejection
    ✅ Update: partial merge, email re-check, protected fields
    ✅ Delete: existence check, confirmation
"""

import pytest

from user_registry.exceptions import (
    DuplicateEmailError,
    InvalidInputError,
    NotFoundError,
    StoreUnavailableError,
)
from user_registry.schemas.user import UserCreate, UserPageQuery, UserUpdate
from user_registry.services.user_service import UserService, apply_patch


class TestUserServiceCreate:
    """Tests for create."""

    @pytest.mark.asyncio
    async def test_create_success(self, mock_store):
        """A fresh email is inserted and returned with id and created_at."""
        service = UserService(mock_store)

        result = await service.create(UserCreate(name="Alice", email="a@x.com", age=30))

        assert result.id is not None
        assert result.created_at is not None
        assert result.name == "Alice"
        assert result.email == "a@x.com"
        assert result.age == 30
        mock_store.get_by_email.assert_awaited_once_with("a@x.com")
        mock_store.insert.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_duplicate_email_precheck(self, mock_store, make_user):
        """An existing holder of the email stops the insert."""
        mock_store.get_by_email.return_value = make_user(email="dup@x.com")
        service = UserService(mock_store)

        with pytest.raises(DuplicateEmailError) as exc_info:
            await service.create(UserCreate(name="Bob", email="dup@x.com"))

        assert exc_info.value.email == "dup@x.com"
        mock_store.insert.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_duplicate_from_store_propagates(self, mock_store):
        """A constraint violation at insert time (lost race) surfaces unchanged."""
        mock_store.insert.side_effect = DuplicateEmailError(email="race@x.com")
        service = UserService(mock_store)

        with pytest.raises(DuplicateEmailError):
            await service.create(UserCreate(name="Racer", email="race@x.com"))

    @pytest.mark.asyncio
    async def test_create_store_unavailable_propagates(self, mock_store):
        """Store failures are neither swallowed nor retried."""
        mock_store.get_by_email.side_effect = StoreUnavailableError()
        service = UserService(mock_store)

        with pytest.raises(StoreUnavailableError):
            await service.create(UserCreate(name="Alice", email="a@x.com"))

        assert mock_store.get_by_email.await_count == 1
        mock_store.insert.assert_not_awaited()


class TestUserServiceReadOne:
    """Tests for read_one."""

    @pytest.mark.asyncio
    async def test_read_one_found(self, mock_store, make_user):
        user = make_user(name="Alice", email="a@x.com")
        mock_store.get_by_id.return_value = user

        result = await UserService(mock_store).read_one(user.id)

        assert result.id == user.id
        assert result.email == "a@x.com"

    @pytest.mark.asyncio
    async def test_read_one_not_found(self, mock_store):
        with pytest.raises(NotFoundError):
            await UserService(mock_store).read_one(999999)


class TestUserServiceReadPage:
    """Tests for read_page offset pagination."""

    @pytest.mark.asyncio
    async def test_offset_and_meta(self, mock_store, make_user):
        """Page 3 of limit 10 asks the store for offset 20; totalPages uses the store total."""
        mock_store.list_page.return_value = ([make_user() for _ in range(5)], 25)

        result = await UserService(mock_store).read_page(UserPageQuery(page=3, limit=10))

        mock_store.list_page.assert_awaited_once_with(search=None, offset=20, limit=10)
        assert len(result.data) == 5
        assert result.meta.page == 3
        assert result.meta.limit == 10
        assert result.meta.total == 25
        assert result.meta.total_pages == 3

    @pytest.mark.asyncio
    async def test_empty_result_has_zero_pages(self, mock_store):
        result = await UserService(mock_store).read_page(UserPageQuery())

        assert result.data == []
        assert result.meta.total == 0
        assert result.meta.total_pages == 0

    @pytest.mark.asyncio
    async def test_defaults(self, mock_store):
        """No parameters means page 1 with the default page size."""
        await UserService(mock_store).read_page(UserPageQuery())

        mock_store.list_page.assert_awaited_once_with(search=None, offset=0, limit=10)

    @pytest.mark.asyncio
    async def test_search_is_trimmed(self, mock_store):
        await UserService(mock_store).read_page(UserPageQuery(search="  bo "))

        mock_store.list_page.assert_awaited_once_with(search="bo", offset=0, limit=10)

    @pytest.mark.asyncio
    async def test_blank_search_means_no_filter(self, mock_store):
        await UserService(mock_store).read_page(UserPageQuery(search="   "))

        mock_store.list_page.assert_awaited_once_with(search=None, offset=0, limit=10)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page,limit", [(0, 10), (-1, 10), (1, 0), (1, -5)])
    async def test_non_positive_values_rejected(self, mock_store, page, limit):
        """Non-positive page/limit are rejected, never clamped or sent to the store."""
        with pytest.raises(InvalidInputError):
            await UserService(mock_store).read_page(UserPageQuery(page=page, limit=limit))

        mock_store.list_page.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_limit_above_maximum_rejected(self, mock_store):
        with pytest.raises(InvalidInputError) as exc_info:
            await UserService(mock_store).read_page(UserPageQuery(limit=101))

        assert exc_info.value.field == "limit"


class TestUserServiceUpdate:
    """Tests for partial update."""

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, mock_store, make_user):
        """update(id, {age: 5}) leaves name and email unchanged."""
        user = make_user(name="Alice", email="a@x.com", age=None)
        mock_store.get_by_id.return_value = user

        result = await UserService(mock_store).update(user.id, UserUpdate(age=5))

        assert result.age == 5
        assert result.name == "Alice"
        assert result.email == "a@x.com"
        # Email unchanged: no uniqueness lookup needed
        mock_store.get_by_email.assert_not_awaited()
        mock_store.save.assert_awaited_once_with(user)

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, mock_store):
        with pytest.raises(NotFoundError):
            await UserService(mock_store).update(999999, UserUpdate(name="Nobody"))

        mock_store.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_to_taken_email_rejected(self, mock_store, make_user):
        """Moving to another user's email fails before save."""
        user = make_user(email="a@x.com")
        other = make_user(email="b@x.com")
        mock_store.get_by_id.return_value = user
        mock_store.get_by_email.return_value = other

        with pytest.raises(DuplicateEmailError):
            await UserService(mock_store).update(user.id, UserUpdate(email="b@x.com"))

        assert user.email == "a@x.com"
        mock_store.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_to_free_email(self, mock_store, make_user):
        user = make_user(email="a@x.com")
        mock_store.get_by_id.return_value = user

        result = await UserService(mock_store).update(user.id, UserUpdate(email="new@x.com"))

        assert result.email == "new@x.com"
        mock_store.get_by_email.assert_awaited_once_with("new@x.com")

    @pytest.mark.asyncio
    async def test_update_same_email_skips_lookup(self, mock_store, make_user):
        user = make_user(email="a@x.com")
        mock_store.get_by_id.return_value = user

        await UserService(mock_store).update(user.id, UserUpdate(email="a@x.com", name="A"))

        mock_store.get_by_email.assert_not_awaited()


class TestApplyPatch:
    """Tests for the explicit merge function."""

    def test_only_supplied_fields_applied(self, make_user):
        user = make_user(name="Alice", email="a@x.com", age=30)

        apply_patch(user, UserUpdate(name="Alicia"))

        assert user.name == "Alicia"
        assert user.email == "a@x.com"
        assert user.age == 30

    def test_explicit_null_age_clears_it(self, make_user):
        user = make_user(age=30)

        apply_patch(user, UserUpdate.model_validate({"age": None}))

        assert user.age is None

    def test_system_fields_cannot_be_patched(self, make_user):
        """id and createdAt in a patch body are ignored."""
        user = make_user()
        original_id, original_created = user.id, user.created_at

        patch = UserUpdate.model_validate(
            {"id": 42, "createdAt": "2000-01-01T00:00:00Z", "created_at": "2000-01-01T00:00:00Z", "age": 7}
        )
        apply_patch(user, patch)

        assert user.id == original_id
        assert user.created_at == original_created
        assert user.age == 7

    def test_null_name_rejected(self):
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            UserUpdate.model_validate({"name": None})


class TestUserServiceDelete:
    """Tests for delete."""

    @pytest.mark.asyncio
    async def test_delete_existing(self, mock_store, make_user):
        user = make_user()
        mock_store.get_by_id.return_value = user

        result = await UserService(mock_store).delete(user.id)

        assert result.message == "User deleted"
        mock_store.delete.assert_awaited_once_with(user)

    @pytest.mark.asyncio
    async def test_delete_unknown_id(self, mock_store):
        with pytest.raises(NotFoundError):
            await UserService(mock_store).delete(999999)

        mock_store.delete.assert_not_awaited()
