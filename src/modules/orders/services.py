"""Order service layer (Use Cases).

Orchestrates order creation, status transitions and the read queries.
Every operation, reads included, runs in ``bounded_atomic()``; the service
defines the unit-of-work boundary and the repositories never open
transactions.  Storage failures surface as ``OrderInternalError``.

Guarantees:
- Creation is all-or-nothing: order, items and stock decrements commit
  together or not at all.
- Stock is decremented with a conditional update, so concurrent orders
  can never oversell.
- Status changes are compare-and-swap on ``version``; a stale caller gets
  ``EditConflict`` and must re-read.  The service never retries.
- Domain events are published only after commit; notifier failures can
  never affect the order.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

import structlog
from django.db import DatabaseError
from django.db.models import Count, Sum

from modules.core.db import bounded_atomic
from modules.core.pagination import calculate_metadata
from modules.orders.constants import OrderStatus
from modules.orders.dtos import OrderPage, OrderStatistics
from modules.orders.events import OrderCreated, OrderStatusChanged
from modules.orders.exceptions import (
    EditConflict,
    InsufficientStock,
    InvalidTransition,
    OrderInternalError,
    OrderNotFound,
)
from modules.orders.pricing import OrderPricingService
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService
from shared.infrastructure.bus import event_bus

if TYPE_CHECKING:
    from modules.orders.dtos import (
        CreateOrderDTO,
        ListOrdersDTO,
        StatisticsQueryDTO,
    )
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

CENTS = Decimal("0.01")


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the pricing service via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        pricing_service: OrderPricingService,
        bus: IEventBus = event_bus,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._pricing = pricing_service
        self._bus = bus

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Price, persist and reserve stock for a new order in one transaction.

        Steps:
        1. Price every item against live price/stock (abort on the first
           missing or short product).
        2. Insert the order header and items with frozen price snapshots.
        3. Conditionally decrement each product's stock; a short product
           rolls everything back.
        4. Publish ``OrderCreated`` after commit.

        Raises:
            ProductNotFound: an item references an unknown product.
            InsufficientStock: not enough stock for one of the items.
            OrderInternalError: storage failure or timeout.
        """
        log = logger.bind(user_id=dto.user_id, item_count=len(dto.items))
        log.info("order.creation_started")

        try:
            with bounded_atomic():
                draft, availability = self._pricing.price(dto)
                order = self._order_repo.create(draft)

                for item in draft.items:
                    if not self._product_repo.decrement_stock(
                        item.product_id, item.quantity
                    ):
                        snapshot = availability[item.product_id]
                        log.warning(
                            "order.stock_changed_during_checkout",
                            product_id=item.product_id,
                            requested=item.quantity,
                        )
                        raise InsufficientStock(
                            snapshot.name, item.quantity, snapshot.stock_quantity
                        )

                order.add_domain_event(
                    OrderCreated(aggregate_id=order.id, user_id=dto.user_id)
                )
                self._bus.publish_on_commit(order)
        except DatabaseError as exc:
            log.exception("order.creation_failed")
            raise OrderInternalError("The order could not be saved.") from exc

        log.info(
            "order.created",
            order_id=order.id,
            total_amount=str(draft.total_amount),
        )
        return self.get_order(order.id)

    def update_status(
        self, order_id: int, new_status: str, expected_version: int
    ) -> Order:
        """Transition an order to ``new_status`` if ``expected_version`` is current.

        Order of checks: existence, version, legality.  The final write is
        conditional on the version, so a writer that raced us between the
        read and the update also gets ``EditConflict``.

        Raises:
            OrderNotFound: order does not exist.
            EditConflict: the stored version differs from ``expected_version``.
            InvalidTransition: ``new_status`` is not reachable.
            OrderInternalError: storage failure or timeout.
        """
        log = logger.bind(
            order_id=order_id,
            new_status=new_status,
            expected_version=expected_version,
        )

        try:
            with bounded_atomic():
                order = self._order_repo.get_by_id(order_id)
                if not order:
                    raise OrderNotFound(f"Order {order_id} not found.")

                log = log.bind(current_status=order.status, version=order.version)

                if order.version != expected_version:
                    log.info("order.edit_conflict")
                    raise EditConflict(
                        f"Order {order_id} was modified; re-read and retry."
                    )

                if not order.can_transition_to(new_status):
                    log.warning("order.invalid_transition", terminal=order.is_terminal)
                    raise InvalidTransition(order.status, new_status)

                if not self._order_repo.update_status(
                    order_id, new_status, expected_version
                ):
                    log.info("order.edit_conflict", stage="write")
                    raise EditConflict(
                        f"Order {order_id} was modified; re-read and retry."
                    )

                old_status = order.status
                order.add_domain_event(
                    OrderStatusChanged(
                        aggregate_id=order_id,
                        old_status=old_status,
                        new_status=new_status,
                        version=expected_version + 1,
                    )
                )
                self._bus.publish_on_commit(order)
        except DatabaseError as exc:
            log.exception("order.status_update_failed")
            raise OrderInternalError("The order could not be updated.") from exc

        log.info("order.status_updated", old_status=old_status)
        return self.get_order(order_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: int) -> Order:
        """Retrieve a single order with its items and user.

        Also used to re-read an order after a committed write; a storage
        failure there surfaces as ``OrderInternalError`` as well.

        Raises:
            OrderNotFound: if the order does not exist.
            OrderInternalError: storage failure or timeout.
        """
        try:
            with bounded_atomic():
                order = self._order_repo.get_by_id(order_id)
        except DatabaseError as exc:
            logger.exception("order.read_failed", order_id=order_id)
            raise OrderInternalError("The order could not be read.") from exc
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, query: ListOrdersDTO) -> OrderPage:
        """Return one page of orders plus pagination metadata."""
        try:
            with bounded_atomic():
                orders, total = self._order_repo.list_page(query)
        except DatabaseError as exc:
            logger.exception("order.list_failed", user_id=query.user_id)
            raise OrderInternalError("The orders could not be listed.") from exc
        return OrderPage(
            orders=orders,
            metadata=calculate_metadata(total, query.page, query.page_size),
        )

    def get_statistics(self, query: StatisticsQueryDTO) -> OrderStatistics:
        """Order counts per status plus revenue figures for a date range.

        Revenue and average order value exclude cancelled orders.

        Raises:
            OrderInternalError: storage failure or timeout.
        """
        status_counts = {value: 0 for value in OrderStatus.values}
        try:
            with bounded_atomic():
                orders = self._order_repo.in_date_range(
                    query.start_date, query.end_date
                )
                for row in (
                    orders.order_by().values("status").annotate(count=Count("id"))
                ):
                    status_counts[row["status"]] = row["count"]

                billable = orders.exclude(status=OrderStatus.CANCELLED)
                revenue = billable.aggregate(total=Sum("total_amount"))[
                    "total"
                ] or Decimal("0.00")
        except DatabaseError as exc:
            logger.exception(
                "order.statistics_failed",
                start_date=str(query.start_date),
                end_date=str(query.end_date),
            )
            raise OrderInternalError("Order statistics are unavailable.") from exc

        billable_count = sum(
            count
            for status, count in status_counts.items()
            if status != OrderStatus.CANCELLED
        )
        average = (
            (revenue / billable_count).quantize(CENTS, rounding=ROUND_HALF_UP)
            if billable_count
            else Decimal("0.00")
        )

        return OrderStatistics(
            start_date=query.start_date,
            end_date=query.end_date,
            total_orders=sum(status_counts.values()),
            status_counts=status_counts,
            total_revenue=revenue.quantize(CENTS),
            average_order_value=average,
        )


def build_order_service(bus: IEventBus = event_bus) -> OrderService:
    """Wire the service with its Django-backed collaborators."""
    product_repository = ProductDjangoRepository()
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=product_repository,
        pricing_service=OrderPricingService(ProductService(product_repository)),
        bus=bus,
    )
