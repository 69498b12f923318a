from __future__ import annotations

import unittest
import uuid
from decimal import Decimal
from unittest import mock

from sqlalchemy.exc import IntegrityError

from order_ledger.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from order_ledger.models import OrderStatus
from order_ledger.services.fulfillment_service import FulfillmentService
from order_ledger.services.order_service import OrderService
from tests.support import LedgerTestCase


class OrderServiceCreateTests(LedgerTestCase):
    async def test_new_received_order_starts_confirmed_with_nothing_dispatched(self) -> None:
        order = await self.make_received("100", rate="12.5", custom_fields={"shade": "navy"})
        self.assertEqual(order.owner_id, self.owner_id)
        self.assertEqual(order.order_number, 1)
        self.assertEqual(order.unit, "mtrs")
        self.assertEqual(order.dispatched_quantity, Decimal("0"))
        self.assertEqual(order.status, OrderStatus.CONFIRMED.value)
        self.assertEqual(order.rate, Decimal("12.5"))
        self.assertEqual(order.custom_fields, {"shade": "navy"})
        self.assertIsNotNone(order.created_at)

    async def test_new_placed_order_has_whole_quantity_remaining(self) -> None:
        order = await self.make_placed("75", unit="kg", received_quantity=None)
        self.assertEqual(order.remaining_quantity, Decimal("75"))
        self.assertIsNone(order.received_quantity)
        self.assertEqual(order.unit, "kg")
        self.assertEqual(order.status, OrderStatus.CONFIRMED.value)
        self.assertFalse(order.over_allocated)

    async def test_order_numbers_follow_each_owners_own_sequence(self) -> None:
        first = await self.make_received()
        second = await self.make_received()
        foreign = await self.make_received(owner_id=self.other_owner_id)
        placed = await self.make_placed()
        self.assertEqual((first.order_number, second.order_number), (1, 2))
        self.assertEqual(foreign.order_number, 1)
        self.assertEqual(placed.order_number, 1)

    async def test_unvalidated_input_is_rejected(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            await OrderService.create_received(self.db, self.owner_id, {"customer_name": "Acme"})
        self.assertEqual(set(ctx.exception.field_errors), {"item_name", "ordered_quantity"})
        self.assertEqual(await OrderService.list_received(self.db, self.owner_id), [])

    async def test_missing_owner_is_an_authentication_error(self) -> None:
        with self.assertRaises(AuthenticationError):
            await OrderService.list_placed(self.db, None)
        with self.assertRaises(AuthenticationError):
            await OrderService.create_received(
                self.db, None, {"customer_name": "Acme", "item_name": "Denim", "ordered_quantity": 1}
            )


class OrderServiceReadTests(LedgerTestCase):
    async def test_list_is_scoped_to_owner_and_newest_first(self) -> None:
        await self.make_received(customer_name="First")
        await self.make_received(customer_name="Second")
        await self.make_received(customer_name="Third")
        await self.make_received(owner_id=self.other_owner_id, customer_name="Elsewhere")

        orders = await OrderService.list_received(self.db, self.owner_id)
        self.assertEqual([o.order_number for o in orders], [3, 2, 1])
        self.assertEqual([o.customer_name for o in orders], ["Third", "Second", "First"])

    async def test_other_owners_order_is_not_found(self) -> None:
        order = await self.make_placed(owner_id=self.other_owner_id)
        with self.assertRaises(NotFoundError):
            await OrderService.get_placed(self.db, self.owner_id, order.id)
        with self.assertRaises(NotFoundError):
            await OrderService.get_received(self.db, self.owner_id, uuid.uuid4())


class OrderServiceUpdateTests(LedgerTestCase):
    async def test_received_quantity_update_leaves_remaining_alone(self) -> None:
        placed = await self.make_placed("50")
        received = await self.make_received("50")
        await FulfillmentService.create_link(self.db, self.owner_id, received.id, placed.id, "20")

        updated = await OrderService.update_placed(self.db, self.owner_id, placed.id, {"received_quantity": "45"})
        self.assertEqual(updated.received_quantity, Decimal("45"))
        self.assertEqual(updated.remaining_quantity, Decimal("30"))

    async def test_descriptive_fields_update(self) -> None:
        order = await self.make_received()
        updated = await OrderService.update_received(
            self.db, self.owner_id, order.id, {"notes": "Rush order", "custom_fields": {"po": "A-17"}}
        )
        self.assertEqual(updated.notes, "Rush order")
        self.assertEqual(updated.custom_fields, {"po": "A-17"})
        self.assertEqual(updated.customer_name, "Acme Textiles")

    async def test_ordered_quantity_is_not_directly_mutable(self) -> None:
        order = await self.make_received("100")
        with self.assertRaises(ValidationError) as ctx:
            await OrderService.update_received(self.db, self.owner_id, order.id, {"ordered_quantity": 10})
        self.assertIn("ordered_quantity", ctx.exception.field_errors)
        self.assertEqual(order.ordered_quantity, Decimal("100"))

    async def test_update_of_other_owners_order_is_not_found(self) -> None:
        order = await self.make_received(owner_id=self.other_owner_id)
        with self.assertRaises(NotFoundError):
            await OrderService.update_received(self.db, self.owner_id, order.id, {"notes": "mine now"})


class OrderServiceDeleteTests(LedgerTestCase):
    async def test_delete_removes_order(self) -> None:
        order = await self.make_placed()
        await OrderService.delete_placed(self.db, self.owner_id, order.id)
        self.assertEqual(await OrderService.list_placed(self.db, self.owner_id), [])

    async def test_delete_of_other_owners_order_is_not_found(self) -> None:
        order = await self.make_received(owner_id=self.other_owner_id)
        with self.assertRaises(NotFoundError):
            await OrderService.delete_received(self.db, self.owner_id, order.id)

    async def test_delete_is_refused_while_links_reference_the_order(self) -> None:
        received = await self.make_received()
        placed = await self.make_placed()
        link = await FulfillmentService.create_link(self.db, self.owner_id, received.id, placed.id, "10")

        with self.assertRaises(ConflictError):
            await OrderService.delete_received(self.db, self.owner_id, received.id)
        with self.assertRaises(ConflictError):
            await OrderService.delete_placed(self.db, self.owner_id, placed.id)

        await FulfillmentService.delete_link(self.db, self.owner_id, link.id)
        await OrderService.delete_received(self.db, self.owner_id, received.id)
        await OrderService.delete_placed(self.db, self.owner_id, placed.id)
        self.assertEqual(await OrderService.list_received(self.db, self.owner_id), [])


class OrderServicePrecisionTests(LedgerTestCase):
    async def test_sub_precision_quantity_never_reaches_the_store(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            await self.make_received("0.00001")
        self.assertEqual(ctx.exception.field_errors, {"ordered_quantity": "At most 4 decimal places"})
        self.assertEqual(await OrderService.list_received(self.db, self.owner_id), [])

    async def test_smallest_stored_quantity_is_kept_exactly(self) -> None:
        order = await self.make_placed("0.0001")
        self.assertEqual(order.ordered_quantity, Decimal("0.0001"))
        self.assertEqual(order.remaining_quantity, Decimal("0.0001"))


class OrderServiceStoreFailureTests(LedgerTestCase):
    async def test_store_rejection_becomes_persistence_error_with_driver_message(self) -> None:
        await self.make_received()
        await self.db.commit()
        with mock.patch(
            "order_ledger.services.order_service._next_order_number", mock.AsyncMock(return_value=1)
        ):
            with self.assertRaises(PersistenceError) as ctx:
                await self.make_received()

        self.assertIsInstance(ctx.exception.__cause__, IntegrityError)
        self.assertEqual(ctx.exception.message, str(ctx.exception.__cause__.orig))
        self.assertIn("UNIQUE constraint failed", ctx.exception.message)

        await self.db.rollback()
        self.assertEqual(len(await OrderService.list_received(self.db, self.owner_id)), 1)


if __name__ == "__main__":
    unittest.main()
