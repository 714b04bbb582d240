"""Tests for OrderService: creation, status changes, payments and broadcasts."""

import asyncio

import pytest

from quickserve.core.exceptions import (
    InvalidPaymentMethod,
    InvalidTable,
    InvalidTransition,
    LineItemInvalid,
    OrderingError,
    OrderNotFound,
    OutOfStock,
)
from quickserve.domain.order import OrderStatus, PaymentMethod, PaymentStatus
from quickserve.domain.transitions import build_transition_table
from quickserve.services.inventory import InMemoryInventoryLedger, MenuItemSnapshot
from quickserve.services.ordering import CartLine, OrderService
from quickserve.services.store import InMemoryOrderStore


def _make_cart():
    return [CartLine("pizza", 2), CartLine("coke", 1, special_instructions="No ice")]


class _RacingLedger(InMemoryInventoryLedger):
    """Reports stock on lookup but loses the reservation race for one item."""

    def __init__(self, items, lose_on: str):
        super().__init__(items)
        self.lose_on = lose_on

    async def reserve(self, menu_item_id, quantity):
        if menu_item_id == self.lose_on:
            item = await self.get_menu_item(menu_item_id)
            raise OutOfStock(item.id, item.name, quantity, 0)
        return await super().reserve(menu_item_id, quantity)


class _FailingStore(InMemoryOrderStore):
    async def save(self, order):
        raise RuntimeError("database unavailable")


class _ContendedStore(InMemoryOrderStore):
    """Another station changes the order just before our first status write."""

    def __init__(self, competing_status: OrderStatus):
        super().__init__()
        self.competing_status = competing_status
        self.raced = False

    async def compare_and_set_status(self, order_id, expected, target, updated_at):
        if not self.raced:
            self.raced = True
            await super().compare_and_set_status(order_id, expected, self.competing_status, updated_at)
            return False
        return await super().compare_and_set_status(order_id, expected, target, updated_at)


class _SlowLookupStore(InMemoryOrderStore):
    """Lookups return the order as it was when the read started, 10 ms late."""

    async def find_by_id(self, order_id):
        order = await super().find_by_id(order_id)
        await asyncio.sleep(0.01)
        return order


class TestCreateOrder:
    async def test_total_is_sum_of_line_totals(self, service):
        order = await service.create_order(_make_cart(), table_id="T1")

        assert order.total_amount == 647
        assert [line.price for line in order.items] == [299, 49]
        assert order.items[1].special_instructions == "No ice"

    async def test_reserves_stock(self, service, ledger):
        await service.create_order(_make_cart(), table_id="T1")

        assert (await ledger.get_menu_item("pizza")).inventory_count == 8
        assert (await ledger.get_menu_item("coke")).inventory_count == 19

    async def test_cash_and_card_orders_go_to_kitchen(self, service):
        cash = await service.create_order(_make_cart(), table_id="T1", payment_method="cash")
        card = await service.create_order(_make_cart(), table_id="T1", payment_method="card")

        assert cash.status == OrderStatus.PREPARING
        assert card.status == OrderStatus.PREPARING
        assert cash.payment_status == PaymentStatus.PENDING

    async def test_upi_order_waits_for_payment(self, service):
        order = await service.create_order(_make_cart(), table_id="T1", payment_method="upi")
        assert order.status == OrderStatus.PENDING
        assert order.payment_method == PaymentMethod.UPI

    async def test_order_numbers_are_distinct_and_increasing(self, service):
        first = await service.create_order(_make_cart(), table_id="T1")
        second = await service.create_order(_make_cart(), table_id="T1")

        assert first.order_number == "ORD00001"
        assert second.order_number == "ORD00002"
        assert first.id != second.id

    async def test_price_snapshot_survives_menu_change(self, service, ledger):
        order = await service.create_order([CartLine("pizza", 1)], table_id="T1")

        ledger.add_item(MenuItemSnapshot("pizza", "Margherita Pizza", 399, True, 10, 2))
        stored = await service.get_order(order.id)

        assert stored.items[0].price == 299
        assert stored.total_amount == 299

    async def test_customer_phone_is_kept(self, service):
        order = await service.create_order(_make_cart(), table_id="T1", customer_phone="9999999999")
        assert order.customer_phone == "9999999999"

    async def test_broadcasts_order_created(self, service, subscriber):
        order = await service.create_order(_make_cart(), table_id="T1")

        assert subscriber.event_names == ["order-created"]
        data = subscriber.messages[0]["data"]
        assert data["id"] == order.id
        assert data["order_number"] == order.order_number
        assert data["total_amount"] == 647


class TestCreateOrderValidation:
    async def test_unknown_menu_item(self, service, ledger):
        with pytest.raises(LineItemInvalid) as exc_info:
            await service.create_order(
                [CartLine("pizza", 1), CartLine("sushi", 1, name="Sushi")], table_id="T1"
            )

        assert "Sushi" in exc_info.value.message
        assert (await ledger.get_menu_item("pizza")).inventory_count == 10

    async def test_out_of_stock_leaves_inventory_untouched(self, service, ledger, store):
        with pytest.raises(OutOfStock) as exc_info:
            await service.create_order([CartLine("coke", 1), CartLine("pizza", 11)], table_id="T1")

        assert exc_info.value.message == "Margherita Pizza is not available or insufficient stock"
        assert (await ledger.get_menu_item("coke")).inventory_count == 20
        assert (await ledger.get_menu_item("pizza")).inventory_count == 10
        assert await store.find_all() == []

    async def test_demand_is_summed_across_lines(self, service, ledger):
        with pytest.raises(OutOfStock) as exc_info:
            await service.create_order([CartLine("pizza", 6), CartLine("pizza", 6)], table_id="T1")

        assert exc_info.value.detail["requested"] == 12
        assert (await ledger.get_menu_item("pizza")).inventory_count == 10

    async def test_disabled_item(self, service, ledger):
        ledger.add_item(MenuItemSnapshot("pizza", "Margherita Pizza", 299, False, 10, 2))
        with pytest.raises(OutOfStock):
            await service.create_order([CartLine("pizza", 1)], table_id="T1")

    async def test_empty_cart(self, service):
        with pytest.raises(OrderingError):
            await service.create_order([], table_id="T1")

    async def test_zero_quantity(self, service):
        with pytest.raises(OrderingError):
            await service.create_order([CartLine("pizza", 0)], table_id="T1")

    async def test_unknown_payment_method(self, service):
        with pytest.raises(InvalidPaymentMethod):
            await service.create_order(_make_cart(), table_id="T1", payment_method="bitcoin")

    async def test_lost_race_releases_earlier_lines(self, tables, store, broadcaster):
        ledger = _RacingLedger(
            [
                MenuItemSnapshot("pizza", "Margherita Pizza", 299, True, 10, 2),
                MenuItemSnapshot("coke", "Coke", 49, True, 20, 5),
            ],
            lose_on="coke",
        )
        service = OrderService(ledger, tables, store, broadcaster)

        with pytest.raises(OutOfStock):
            await service.create_order(_make_cart(), table_id="T1")

        assert (await ledger.get_menu_item("pizza")).inventory_count == 10

    async def test_failed_save_releases_stock(self, ledger, tables, broadcaster, subscriber):
        service = OrderService(ledger, tables, _FailingStore(), broadcaster)

        with pytest.raises(RuntimeError):
            await service.create_order(_make_cart(), table_id="T1")

        assert (await ledger.get_menu_item("pizza")).inventory_count == 10
        assert (await ledger.get_menu_item("coke")).inventory_count == 20
        assert subscriber.messages == []


class TestTableResolution:
    async def test_structured_table_id(self, service):
        order = await service.create_order(_make_cart(), table_id="T4")
        assert order.table_id == "T4"
        assert order.table_number == 4

    async def test_unknown_table(self, service, ledger):
        with pytest.raises(InvalidTable):
            await service.create_order(_make_cart(), table_id="T42")
        assert (await ledger.get_menu_item("pizza")).inventory_count == 10

    async def test_inactive_table(self, service):
        with pytest.raises(InvalidTable) as exc_info:
            await service.create_order(_make_cart(), table_id="T9")
        assert "not active" in exc_info.value.message

    async def test_bare_table_number(self, service):
        order = await service.create_order(_make_cart(), table_number=7)
        assert order.table_id == "T7"
        assert order.table_number == 7

    async def test_no_table_defaults_to_one(self, service):
        order = await service.create_order(_make_cart())
        assert order.table_id == "T1"
        assert order.table_number == 1


class TestTransitionStatus:
    async def test_kitchen_flow(self, service, subscriber):
        order = await service.create_order(_make_cart(), table_id="T1")

        prepared = await service.transition_status(order.id, "prepared")
        delivered = await service.transition_status(order.id, "delivered")

        assert prepared.status == OrderStatus.PREPARED
        assert delivered.status == OrderStatus.DELIVERED
        assert (await service.get_order(order.id)).status == OrderStatus.DELIVERED
        assert subscriber.event_names == ["order-created", "order-updated", "order-updated"]
        assert subscriber.messages[-1]["data"]["status"] == "delivered"

    async def test_delivered_order_cannot_go_back(self, service, subscriber):
        order = await service.create_order(_make_cart(), table_id="T1")
        await service.transition_status(order.id, "prepared")
        await service.transition_status(order.id, "delivered")

        with pytest.raises(InvalidTransition):
            await service.transition_status(order.id, "preparing")

        assert (await service.get_order(order.id)).status == OrderStatus.DELIVERED
        assert subscriber.event_names.count("order-updated") == 2

    async def test_same_status_is_silent(self, service, subscriber):
        order = await service.create_order(_make_cart(), table_id="T1")

        result = await service.transition_status(order.id, "preparing")

        assert result.status == OrderStatus.PREPARING
        assert subscriber.event_names == ["order-created"]

    async def test_unknown_target_status(self, service):
        order = await service.create_order(_make_cart(), table_id="T1")
        with pytest.raises(InvalidTransition):
            await service.transition_status(order.id, "eaten")

    async def test_unknown_order(self, service):
        with pytest.raises(OrderNotFound):
            await service.transition_status("missing", "prepared")

    async def test_cancel_does_not_restore_stock(self, service, ledger):
        order = await service.create_order(_make_cart(), table_id="T1")

        await service.transition_status(order.id, "cancelled")

        assert (await ledger.get_menu_item("pizza")).inventory_count == 8

    async def test_cancel_while_preparing_toggle(self, ledger, tables, store, broadcaster):
        service = OrderService(
            ledger, tables, store, broadcaster,
            transitions=build_transition_table(allow_cancel_while_preparing=False),
        )
        order = await service.create_order(_make_cart(), table_id="T1")

        with pytest.raises(InvalidTransition):
            await service.transition_status(order.id, "cancelled")

    async def test_lost_race_to_cancel_is_rejected(self, ledger, tables, broadcaster):
        store = _ContendedStore(OrderStatus.CANCELLED)
        service = OrderService(ledger, tables, store, broadcaster)
        order = await service.create_order(_make_cart(), table_id="T1")

        with pytest.raises(InvalidTransition):
            await service.transition_status(order.id, "prepared")

        assert (await store.find_by_id(order.id)).status == OrderStatus.CANCELLED

    async def test_lost_race_to_same_status_succeeds_quietly(self, ledger, tables, broadcaster, subscriber):
        store = _ContendedStore(OrderStatus.PREPARED)
        service = OrderService(ledger, tables, store, broadcaster)
        order = await service.create_order(_make_cart(), table_id="T1")

        result = await service.transition_status(order.id, "prepared")

        assert result.status == OrderStatus.PREPARED
        assert subscriber.event_names == ["order-created"]

    async def test_broadcast_failure_keeps_change(self, service, failing_subscriber, broadcaster):
        order = await service.create_order(_make_cart(), table_id="T1")

        updated = await service.transition_status(order.id, "prepared")

        assert updated.status == OrderStatus.PREPARED
        assert (await service.get_order(order.id)).status == OrderStatus.PREPARED
        assert broadcaster.subscriber_count == 0


class TestPayment:
    async def test_paid_upi_order_moves_to_kitchen(self, service, subscriber):
        order = await service.create_order(_make_cart(), table_id="T1", payment_method="upi")

        paid = await service.update_payment_status(order.id, "paid", "upi", "TXN123")

        assert paid.status == OrderStatus.PREPARING
        assert paid.payment_status == PaymentStatus.PAID
        assert paid.transaction_id == "TXN123"
        stored = await service.get_order(order.id)
        assert stored.status == OrderStatus.PREPARING
        assert stored.payment_status == PaymentStatus.PAID
        assert subscriber.event_names == ["order-created", "payment-updated", "order-updated"]
        assert subscriber.messages[1]["data"] == {
            "order_id": order.id,
            "payment_method": "upi",
            "payment_status": "paid",
            "transaction_id": "TXN123",
        }

    async def test_failed_payment_keeps_order_pending(self, service, subscriber):
        order = await service.create_order(_make_cart(), table_id="T1", payment_method="upi")

        result = await service.update_payment_status(order.id, "failed")

        assert result.status == OrderStatus.PENDING
        assert result.payment_status == PaymentStatus.FAILED
        assert subscriber.event_names == ["order-created", "payment-updated"]

    async def test_payment_on_kitchen_order_only_updates_payment(self, service):
        order = await service.create_order(_make_cart(), table_id="T1", payment_method="cash")
        await service.transition_status(order.id, "prepared")

        result = await service.update_payment_status(order.id, "paid", "card")

        assert result.status == OrderStatus.PREPARED
        assert result.payment_method == PaymentMethod.CARD

    async def test_invalid_payment_status(self, service):
        order = await service.create_order(_make_cart(), table_id="T1")
        with pytest.raises(InvalidPaymentMethod):
            await service.update_payment_status(order.id, "refunded")

    async def test_unknown_order(self, service):
        with pytest.raises(OrderNotFound):
            await service.update_payment_status("missing", "paid")


class TestPaymentRaces:
    async def test_payment_keeps_concurrent_kitchen_move(self, ledger, tables, broadcaster):
        store = _SlowLookupStore()
        service = OrderService(ledger, tables, store, broadcaster)
        order = await service.create_order(_make_cart(), table_id="T1", payment_method="cash")

        async def pay():
            await asyncio.sleep(0.005)
            return await service.update_payment_status(order.id, "paid", "cash")

        moved, paid = await asyncio.gather(service.transition_status(order.id, "prepared"), pay())

        assert moved.status == OrderStatus.PREPARED
        assert paid.status == OrderStatus.PREPARED
        stored = await store.find_by_id(order.id)
        assert stored.status == OrderStatus.PREPARED
        assert stored.payment_status == PaymentStatus.PAID

    async def test_paid_upi_order_cancelled_meanwhile_stays_cancelled(self, ledger, tables, broadcaster, subscriber):
        store = _SlowLookupStore()
        service = OrderService(ledger, tables, store, broadcaster)
        order = await service.create_order(_make_cart(), table_id="T1", payment_method="upi")

        async def pay():
            await asyncio.sleep(0.005)
            return await service.update_payment_status(order.id, "paid", "upi", "TXN9")

        await asyncio.gather(service.transition_status(order.id, "cancelled"), pay())

        stored = await store.find_by_id(order.id)
        assert stored.status == OrderStatus.CANCELLED
        assert stored.payment_status == PaymentStatus.PAID
        assert stored.transaction_id == "TXN9"
        assert subscriber.event_names == ["order-created", "order-updated", "payment-updated"]
        assert subscriber.messages[1]["data"]["status"] == "cancelled"

    async def test_lost_release_still_records_payment(self, ledger, tables, broadcaster, subscriber):
        store = _ContendedStore(OrderStatus.CANCELLED)
        service = OrderService(ledger, tables, store, broadcaster)
        order = await service.create_order(_make_cart(), table_id="T1", payment_method="upi")

        result = await service.update_payment_status(order.id, "paid", "upi")

        assert result.status == OrderStatus.CANCELLED
        assert result.payment_status == PaymentStatus.PAID
        assert subscriber.event_names == ["order-created", "payment-updated"]


class TestQueries:
    async def test_active_orders_newest_first(self, service):
        first = await service.create_order(_make_cart(), table_id="T1")
        second = await service.create_order(_make_cart(), table_id="T4")
        done = await service.create_order(_make_cart(), table_id="T1")
        await service.transition_status(done.id, "cancelled")

        active = await service.get_active_orders()

        assert {o.id for o in active} == {first.id, second.id}
        assert active[0].created_at >= active[1].created_at

    async def test_orders_by_table(self, service):
        await service.create_order(_make_cart(), table_id="T1")
        mine = await service.create_order(_make_cart(), table_id="T4")

        orders = await service.get_orders_by_table("T4")

        assert [o.id for o in orders] == [mine.id]

    async def test_list_orders_by_status(self, service):
        order = await service.create_order(_make_cart(), table_id="T1", payment_method="upi")
        await service.create_order(_make_cart(), table_id="T1")

        pending = await service.list_orders(status="PENDING")

        assert [o.id for o in pending] == [order.id]

    async def test_list_orders_invalid_status(self, service):
        with pytest.raises(OrderingError):
            await service.list_orders(status="eaten")

    async def test_restock(self, service):
        item = await service.restock("pizza", 25)
        assert item.inventory_count == 25

    async def test_restock_negative(self, service):
        with pytest.raises(OrderingError):
            await service.restock("pizza", -1)
