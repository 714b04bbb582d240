"""
SQL Order Store

Orders in the `orders` table, order numbers from the `order_sequences`
counter row. Status changes go through a conditional UPDATE on the expected
status, so two stations racing on the same order cannot both win.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quickserve.database import ORDER_SEQUENCE_NAME
from quickserve.domain.order import ACTIVE_STATUSES, Order, OrderStatus, PaymentMethod, PaymentStatus
from quickserve.models import OrderRecord, OrderSequence
from quickserve.services.store.base import BaseOrderStore

logger = logging.getLogger(__name__)


class SqlOrderStore(BaseOrderStore):
    """Order store backed by SQLAlchemy async sessions."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        prefix: str = "ORD",
        width: int = 5,
    ):
        super().__init__(prefix, width)
        self._session_maker = session_maker

    @property
    def provider_name(self) -> str:
        return "sql"

    async def allocate_order_number(self) -> str:
        stmt = (
            update(OrderSequence)
            .where(OrderSequence.name == ORDER_SEQUENCE_NAME)
            .values(value=OrderSequence.value + 1)
            .returning(OrderSequence.value)
            .execution_options(synchronize_session=False)
        )
        async with self._session_maker() as session, session.begin():
            sequence = (await session.execute(stmt)).scalar_one()
        return self.format_order_number(sequence)

    async def save(self, order: Order) -> Order:
        async with self._session_maker() as session, session.begin():
            record = await session.get(OrderRecord, order.id)
            if record is None:
                session.add(OrderRecord.from_domain(order, self.parse_order_number(order.order_number)))
            else:
                record.apply(order)
        return order

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        async with self._session_maker() as session:
            record = await session.get(OrderRecord, order_id)
            return record.to_domain() if record else None

    async def _select(self, *criteria) -> list[Order]:
        query = (
            select(OrderRecord)
            .where(*criteria)
            .order_by(OrderRecord.created_at.desc(), OrderRecord.sequence.asc())
        )
        async with self._session_maker() as session:
            result = await session.execute(query)
            return [record.to_domain() for record in result.scalars().all()]

    async def find_active(self) -> list[Order]:
        return await self._select(OrderRecord.status.in_(ACTIVE_STATUSES))

    async def find_by_table(self, table_id: str) -> list[Order]:
        return await self._select(OrderRecord.table_id == table_id)

    async def find_all(
        self,
        status: Optional[OrderStatus] = None,
        table_id: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> list[Order]:
        criteria = []
        if status is not None:
            criteria.append(OrderRecord.status == status)
        if table_id is not None:
            criteria.append(OrderRecord.table_id == table_id)
        if created_from is not None:
            criteria.append(OrderRecord.created_at >= created_from)
        if created_to is not None:
            criteria.append(OrderRecord.created_at <= created_to)
        return await self._select(*criteria)

    async def compare_and_set_status(
        self,
        order_id: str,
        expected: OrderStatus,
        target: OrderStatus,
        updated_at: datetime,
    ) -> bool:
        stmt = (
            update(OrderRecord)
            .where(OrderRecord.id == order_id, OrderRecord.status == expected)
            .values(status=target, updated_at=updated_at)
            .execution_options(synchronize_session=False)
        )
        async with self._session_maker() as session, session.begin():
            result = await session.execute(stmt)
            updated = result.rowcount == 1
        return updated

    async def update_payment(
        self,
        order_id: str,
        payment_status: PaymentStatus,
        payment_method: Optional[PaymentMethod] = None,
        transaction_id: Optional[str] = None,
        updated_at: Optional[datetime] = None,
    ) -> Optional[Order]:
        values = {"payment_status": payment_status}
        if payment_method is not None:
            values["payment_method"] = payment_method
        if transaction_id:
            values["transaction_id"] = transaction_id
        if updated_at is not None:
            values["updated_at"] = updated_at

        stmt = (
            update(OrderRecord)
            .where(OrderRecord.id == order_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        async with self._session_maker() as session, session.begin():
            result = await session.execute(stmt)
            if result.rowcount != 1:
                return None
            record = await session.get(OrderRecord, order_id)
            return record.to_domain()

    async def health_check(self) -> bool:
        try:
            async with self._session_maker() as session:
                await session.execute(select(1))
            return True
        except Exception as e:
            logger.error(f"Order database health check failed: {e}")
            return False
