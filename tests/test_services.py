"""
Tests: Domain Services
======================
Credential, directory and ledger services over in-memory stores.
"""

import asyncio

import pytest

from pizza_service.core.exceptions import (
    AuthenticationError,
    ConflictError,
    DependencyError,
    ValidationError,
)
from pizza_service.core.security import PasswordHasher
from pizza_service.services import CredentialService, DirectoryService, OrderLedger
from pizza_service.services.fulfillment import BaseFulfillmentService, MockFulfillmentService
from pizza_service.stores import OrderItem, Role, build_memory_stores


@pytest.fixture
def stores():
    return build_memory_stores()


@pytest.fixture
def credentials(stores):
    return CredentialService(stores.credentials, PasswordHasher(rounds=4))


@pytest.fixture
def directory(stores):
    return DirectoryService(stores.directory)


def _ledger(stores, directory, failure_rate=0.0, page_size=10):
    factory = MockFulfillmentService(failure_rate=failure_rate, max_latency=0.0)
    return OrderLedger(stores.ledger, directory, factory, page_size=page_size), factory


class _HangingFactory(BaseFulfillmentService):
    provider_name = "hanging"

    async def fulfill(self, diner, order):
        await asyncio.sleep(60)


class _BrokenFactory(BaseFulfillmentService):
    provider_name = "broken"

    async def fulfill(self, diner, order):
        raise RuntimeError("factory client bug")


ITEMS = [
    OrderItem(menu_id=1, description="Veggie", price=0.05),
    OrderItem(menu_id=2, description="Pepperoni", price=0.10),
]


# ══════════════════════════════════════════════════════════════
# CREDENTIALS
# ══════════════════════════════════════════════════════════════


class TestCredentialService:
    async def test_register_grants_diner(self, credentials):
        user = await credentials.register("pizza diner", "d@jwt.com", "diner")
        assert [g.role for g in user.roles] == [Role.DINER]
        assert user.password_hash != "diner"

    @pytest.mark.parametrize("name, email, password", [
        (None, "d@jwt.com", "diner"),
        ("pizza diner", "", "diner"),
        ("pizza diner", "d@jwt.com", None),
    ])
    async def test_register_requires_all_fields(self, credentials, name, email, password):
        with pytest.raises(ValidationError) as exc:
            await credentials.register(name, email, password)
        assert exc.value.message == "name, email, and password are required"

    async def test_register_duplicate_email(self, credentials):
        await credentials.register("one", "d@jwt.com", "diner")
        with pytest.raises(ConflictError):
            await credentials.register("two", "d@jwt.com", "diner")

    async def test_overlong_password_rejected(self, credentials):
        with pytest.raises(ValidationError):
            await credentials.register("long", "long@jwt.com", "x" * 73)

    async def test_authenticate(self, credentials):
        user = await credentials.register("pizza diner", "d@jwt.com", "diner")
        assert (await credentials.authenticate("d@jwt.com", "diner")).id == user.id

    @pytest.mark.parametrize("email, password", [
        ("d@jwt.com", "wrong"),
        ("nobody@jwt.com", "diner"),
        (None, "diner"),
        ("d@jwt.com", None),
    ])
    async def test_authenticate_rejects(self, credentials, email, password):
        await credentials.register("pizza diner", "d@jwt.com", "diner")
        with pytest.raises(AuthenticationError) as exc:
            await credentials.authenticate(email, password)
        assert exc.value.message == "invalid credentials"

    async def test_update_password(self, credentials):
        user = await credentials.register("pizza diner", "d@jwt.com", "diner")
        await credentials.update_profile(user.id, password="changed")
        await credentials.authenticate("d@jwt.com", "changed")
        with pytest.raises(AuthenticationError):
            await credentials.authenticate("d@jwt.com", "diner")

    async def test_update_empty_fields_are_ignored(self, credentials):
        user = await credentials.register("pizza diner", "d@jwt.com", "diner")
        updated = await credentials.update_profile(user.id, name="", email="", password="")
        assert updated.name == "pizza diner"
        assert updated.email == "d@jwt.com"

    async def test_list_users_page_is_offset(self, credentials):
        for i in range(3):
            await credentials.register(f"user{i}", f"user{i}@jwt.com", "pw")
        page = await credentials.list_users(1, 2)
        assert [u.name for u in page.items] == ["user2"]
        assert page.more is False

    async def test_list_users_rejects_bad_paging(self, credentials):
        with pytest.raises(ValidationError):
            await credentials.list_users(-1, 10)


# ══════════════════════════════════════════════════════════════
# DIRECTORY
# ══════════════════════════════════════════════════════════════


class TestDirectoryService:
    async def test_create_franchise_requires_name(self, directory):
        with pytest.raises(ValidationError):
            await directory.create_franchise("", [])

    async def test_star_filter_lists_everything(self, directory):
        await directory.create_franchise("pizzaPocket", [])
        await directory.create_franchise("burgerBarn", [])
        page = await directory.list_franchises(0, 10, "*")
        assert len(page.items) == 2

    async def test_create_store_requires_name(self, directory):
        franchise = await directory.create_franchise("pizzaPocket", [])
        with pytest.raises(ValidationError):
            await directory.create_store(franchise.id, None)


# ══════════════════════════════════════════════════════════════
# LEDGER
# ══════════════════════════════════════════════════════════════


class TestOrderLedger:
    async def test_add_menu_item_returns_menu(self, stores, directory):
        ledger, _ = _ledger(stores, directory)
        await ledger.add_menu_item("Veggie", "garden", "pizza1.png", 0.0038)
        menu = await ledger.add_menu_item("Student", "carbs", "pizza9.png", 0.0001)
        assert [m.title for m in menu] == ["Veggie", "Student"]

    async def test_add_menu_item_validates(self, stores, directory):
        ledger, _ = _ledger(stores, directory)
        with pytest.raises(ValidationError):
            await ledger.add_menu_item("", price=1.0)
        with pytest.raises(ValidationError):
            await ledger.add_menu_item("Negative", price=-1.0)

    async def test_place_order_fulfills_and_records_revenue(self, stores, credentials, directory):
        ledger, factory = _ledger(stores, directory)
        diner = await credentials.register("pizza diner", "d@jwt.com", "diner")
        franchise = await directory.create_franchise("pizzaPocket", [])
        store = await directory.create_store(franchise.id, "SLC")

        placed = await ledger.place_order(diner, franchise.id, store.id, ITEMS)

        assert placed.fulfillment.success is True
        assert placed.fulfillment.jwt
        assert placed.order.total == pytest.approx(0.15)
        assert list(factory.fulfilled) == [placed.order.id]
        refreshed = await directory.get_franchise(franchise.id)
        assert refreshed.stores[0].total_revenue == pytest.approx(0.15)

    async def test_place_order_requires_items(self, stores, credentials, directory):
        ledger, _ = _ledger(stores, directory)
        diner = await credentials.register("pizza diner", "d@jwt.com", "diner")
        with pytest.raises(ValidationError):
            await ledger.place_order(diner, 1, 1, [])

    async def test_factory_failure_keeps_order(self, stores, credentials, directory):
        ledger, _ = _ledger(stores, directory, failure_rate=1.0)
        diner = await credentials.register("pizza diner", "d@jwt.com", "diner")

        with pytest.raises(DependencyError) as exc:
            await ledger.place_order(diner, 1, 1, ITEMS)

        assert exc.value.status_code == 500
        assert exc.value.message == "Failed to fulfill order at factory"
        assert exc.value.to_dict()["followLinkToEndChaos"].startswith("https://")
        history = await ledger.get_orders(diner.id)
        assert len(history.orders) == 1

    async def test_order_history_pages(self, stores, credentials, directory):
        ledger, _ = _ledger(stores, directory, page_size=2)
        diner = await credentials.register("pizza diner", "d@jwt.com", "diner")
        for _ in range(3):
            await ledger.place_order(diner, 1, 1, ITEMS)

        first = await ledger.get_orders(diner.id, 0)
        second = await ledger.get_orders(diner.id, 1)
        assert (len(first.orders), first.more) == (2, True)
        assert (len(second.orders), second.more) == (1, False)
        assert second.page == 1

    async def test_hung_factory_is_cut_off(self, stores, credentials, directory):
        ledger = OrderLedger(stores.ledger, directory, _HangingFactory(), fulfillment_timeout=0.1)
        diner = await credentials.register("pizza diner", "d@jwt.com", "diner")

        with pytest.raises(DependencyError) as exc:
            await ledger.place_order(diner, 1, 1, ITEMS)

        assert exc.value.message == "Failed to fulfill order at factory"
        assert len((await ledger.get_orders(diner.id)).orders) == 1

    async def test_factory_exception_becomes_failure(self, stores, credentials, directory):
        ledger = OrderLedger(stores.ledger, directory, _BrokenFactory())
        diner = await credentials.register("pizza diner", "d@jwt.com", "diner")

        with pytest.raises(DependencyError) as exc:
            await ledger.place_order(diner, 1, 1, ITEMS)

        assert exc.value.status_code == 500
        assert "followLinkToEndChaos" in exc.value.to_dict()
        assert len((await ledger.get_orders(diner.id)).orders) == 1
