"""Order service layer (Use Cases).

Orchestrates order placement, header updates and deletion.  Every write
is atomic: the service defines the unit-of-work boundary and the
repositories / inventory ledger join it.

Business rules enforced:
- An order and all of its lines are created together or not at all.
- Stock never goes negative: product rows are locked (SELECT FOR UPDATE,
  primary-key order) and each decrement is a conditional UPDATE.
- Several lines may name the same product; their quantities are claimed
  against one stock figure within the transaction.
- The caller-supplied ``price`` is authoritative.  A mismatch with the
  sum of the lines is logged, or refused when
  ``ORDERS_ENFORCE_PRICE_MATCH`` is enabled.
- A repeated ``idempotency_key`` returns the existing order unchanged.
- Updates touch only the header fields relevant to the order's kind;
  lines and stock are never modified after placement.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.conf import settings
from django.db import DatabaseError, IntegrityError, models, transaction

from modules.core.pagination import Page, paginate
from modules.orders.constants import COMMON_EDITABLE_FIELDS, KIND_EDITABLE_FIELDS
from modules.orders.exceptions import (
    InsufficientStock,
    OrderNotFound,
    OrderReadFailure,
    PriceMismatch,
    ProductNotFound,
    TransactionFailure,
)

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import IInventoryLedger
    from modules.orders.dtos import PlaceOrderDTO, UpdateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PlacementResult:
    order: Order
    created: bool


class OrderPlacementService:
    """Application service for placing orders.

    Receives the order repository and inventory ledger via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        inventory_ledger: IInventoryLedger,
        enforce_price_match: Optional[bool] = None,
    ) -> None:
        self._order_repo = order_repository
        self._ledger = inventory_ledger
        if enforce_price_match is None:
            enforce_price_match = getattr(settings, "ORDERS_ENFORCE_PRICE_MATCH", False)
        self._enforce_price_match = enforce_price_match

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def place_order(self, dto: PlaceOrderDTO) -> Order:
        """Place an order and return it; see ``place`` for the details."""
        return self.place(dto).order

    def place(self, dto: PlaceOrderDTO) -> PlacementResult:
        """Place an order and reserve its stock atomically.

        ``PlacementResult.created`` is False when the idempotency key
        resolved to an order that was already placed.

        Steps:
        1. Idempotency check: an order already carrying the key is
           returned as-is.
        2. In one transaction: insert the header, lock the products, check
           each line against the stock left by earlier lines, insert the
           lines and decrement stock.
        3. After commit, re-read the aggregate for the caller.

        Raises:
            ProductNotFound: a line names an unknown product.
            InsufficientStock: a line asks for more than remains.
            PriceMismatch: price differs from the lines (enforced mode only).
            TransactionFailure: the database failed to apply the write.
            OrderReadFailure: the order committed but could not be re-read.
        """
        log = logger.bind(kind=dto.kind.value, line_count=len(dto.lines))
        log.info("order.placement_started", user_id=dto.user_id)

        if dto.idempotency_key:
            existing = self.find_by_idempotency_key(dto.idempotency_key)
            if existing:
                return PlacementResult(existing, created=False)

        try:
            order = self._place(dto, log)
        except IntegrityError as exc:
            # A concurrent request with the same key committed first.
            if dto.idempotency_key:
                existing = self.find_by_idempotency_key(dto.idempotency_key)
                if existing:
                    return PlacementResult(existing, created=False)
            log.exception("order.placement_failed")
            raise TransactionFailure("Order could not be stored.") from exc
        except DatabaseError as exc:
            log.exception("order.placement_failed")
            raise TransactionFailure("Order could not be stored.") from exc

        log.info("order.placed", order_id=str(order.id), price=str(order.price))
        return PlacementResult(self._reload(order), created=True)

    def find_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Return the order already placed under *key*, if any."""
        existing = self._order_repo.get_by_idempotency_key(key)
        if existing:
            logger.info("order.idempotency_hit", order_id=str(existing.id), key=key)
        return existing

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @transaction.atomic
    def _place(self, dto: PlaceOrderDTO, log: Any) -> Order:
        order = self._order_repo.create_header(dto.header_fields())
        log = log.bind(order_id=str(order.id))

        products = self._ledger.lock_products(line.product_id for line in dto.lines)

        claimed: Dict[Any, int] = defaultdict(int)
        line_rows: List[Dict[str, Any]] = []
        computed_total = Decimal("0.00")

        for line in dto.lines:
            product = products.get(line.product_id)
            if product is None:
                log.warning("order.product_missing", product_id=str(line.product_id))
                raise ProductNotFound(line.product_id)

            available = product.stock_quantity - claimed[product.id]
            if line.quantity > available:
                log.warning(
                    "order.stock_insufficient",
                    product_id=str(product.id),
                    requested=line.quantity,
                    available=available,
                )
                raise InsufficientStock(
                    product.id, requested=line.quantity, available=available
                )

            claimed[product.id] += line.quantity
            computed_total += product.price * line.quantity
            line_rows.append(
                {
                    "product_id": product.id,
                    "quantity": line.quantity,
                    "unit_price": product.price,
                }
            )

        self._reconcile_price(dto.price, computed_total, log)

        self._order_repo.add_lines(order, line_rows)

        for row in line_rows:
            remaining = self._ledger.decrement_stock(row["product_id"], row["quantity"])
            log.info(
                "order.stock_reserved",
                product_id=str(row["product_id"]),
                quantity=row["quantity"],
                remaining=remaining,
            )

        return order

    def _reconcile_price(self, supplied: Decimal, computed: Decimal, log: Any) -> None:
        if supplied == computed:
            return
        log.warning(
            "order.price_mismatch",
            supplied=str(supplied),
            computed=str(computed),
            enforced=self._enforce_price_match,
        )
        if self._enforce_price_match:
            raise PriceMismatch(supplied, computed)

    def _reload(self, order: Order) -> Order:
        try:
            loaded = self._order_repo.get_by_id(order.id)
        except DatabaseError as exc:
            logger.exception("order.reload_failed", order_id=str(order.id))
            raise OrderReadFailure(order.id) from exc
        if loaded is None:
            logger.error("order.reload_failed", order_id=str(order.id))
            raise OrderReadFailure(order.id)
        return loaded


class OrderMutationService:
    """Application service for order updates, deletion and reads.

    Receives the order repository via constructor injection (DIP).
    """

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def update_order(self, order_id: Any, dto: UpdateOrderDTO) -> Order:
        """Apply a partial header update.

        Only the common fields (price, bonus, status) and the fields of the
        order's kind are applied; anything else is ignored.  If no value
        actually changes the row is not written.

        Raises:
            OrderNotFound: order does not exist.
            TransactionFailure: the database failed to apply the write.
        """
        try:
            return self._apply_update(order_id, dto)
        except DatabaseError as exc:
            logger.exception("order.update_failed", order_id=str(order_id))
            raise TransactionFailure("Order could not be updated.") from exc

    def delete_order(self, order_id: Any) -> None:
        """Delete an order together with its lines.

        Stock reserved by the order is not restored.

        Raises:
            OrderNotFound: order does not exist.
            TransactionFailure: the database failed to apply the delete.
        """
        try:
            with transaction.atomic():
                deleted = self._order_repo.delete(order_id)
        except DatabaseError as exc:
            logger.exception("order.delete_failed", order_id=str(order_id))
            raise TransactionFailure("Order could not be deleted.") from exc
        if not deleted:
            raise OrderNotFound(f"Order {order_id} not found.")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def order_queryset(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Order]":
        """Orders in stored order, for filtering at the API layer."""
        return self._order_repo.list(filters)

    def list_orders(
        self,
        skip: int = 0,
        limit: Optional[int] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Page[Order]:
        return paginate(self.order_queryset(filters), skip, limit)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @transaction.atomic
    def _apply_update(self, order_id: Any, dto: UpdateOrderDTO) -> Order:
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=str(order.id), kind=order.kind)
        editable = COMMON_EDITABLE_FIELDS + KIND_EDITABLE_FIELDS.get(str(order.kind), ())

        changed: List[str] = []
        for field, value in dto.supplied().items():
            if field not in editable:
                log.info("order.update_field_ignored", field=field)
                continue
            if getattr(order, field) == value:
                continue
            setattr(order, field, value)
            changed.append(field)

        if not changed:
            log.info("order.update_noop")
            return order

        self._order_repo.save(order, update_fields=changed)
        log.info("order.updated", fields=changed)
        return order
