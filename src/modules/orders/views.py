"""Order API views.

Exposes the order services via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from typing import Any, Dict

import pydantic
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.catalog.repositories.ledger import InventoryDjangoLedger
from modules.catalog.views import page_payload
from modules.core.pagination import InvalidPageRange, paginate, parse_page_params
from modules.orders.dtos import PlaceOrderDTO, PlaceOrderLineDTO, UpdateOrderDTO
from modules.orders.exceptions import (
    InsufficientStock,
    OrderNotFound,
    OrderReadFailure,
    PriceMismatch,
    ProductNotFound,
    TransactionFailure,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    OrderSerializer,
    PlaceOrderSerializer,
    UpdateOrderSerializer,
)
from modules.orders.services import OrderMutationService, OrderPlacementService


def _not_found() -> Response:
    return Response({"detail": "Order not found."}, status=status.HTTP_404_NOT_FOUND)


def _invalid_dto(exc: pydantic.ValidationError) -> Response:
    errors: Dict[str, Any] = {}
    for error in exc.errors(include_url=False):
        field = ".".join(str(part) for part in error["loc"]) or "non_field_errors"
        errors.setdefault(field, []).append(error["msg"])
    return Response(errors, status=status.HTTP_400_BAD_REQUEST)


def _storage_failure(exc: TransactionFailure) -> Response:
    return Response(
        {"detail": str(exc)},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderPlacementService`` and ``OrderMutationService`` with
    injected repositories (DIP).  Does **not** extend ``ModelViewSet``:
    all ORM access goes through the service/repository layer.
    """

    queryset = Order.objects.all()
    permission_classes = [IsAuthenticated]
    filterset_class = OrderFilter
    filter_backends = [DjangoFilterBackend]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        order_repository = OrderDjangoRepository()
        self._placement = OrderPlacementService(
            order_repository=order_repository,
            inventory_ledger=InventoryDjangoLedger(),
        )
        self._mutation = OrderMutationService(order_repository=order_repository)

    def get_throttles(self) -> list[BaseThrottle]:
        """Pick the throttle scope per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_placement"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header.
        Returns 200 if the key was already used, 201 for new orders.
        """
        place_serializer = PlaceOrderSerializer(data=request.data)
        place_serializer.is_valid(raise_exception=True)

        data = dict(place_serializer.validated_data)
        lines = data.pop("lines")
        idempotency_key = request.headers.get("Idempotency-Key") or None
        try:
            dto = PlaceOrderDTO(
                **data,
                lines=[
                    PlaceOrderLineDTO(
                        product_id=line["product_id"],
                        quantity=line["quantity"],
                    )
                    for line in lines
                ],
                idempotency_key=idempotency_key,
            )
        except pydantic.ValidationError as exc:
            return _invalid_dto(exc)

        try:
            result = self._placement.place(dto)
        except ProductNotFound as exc:
            return Response(
                {"detail": str(exc), "product_id": str(exc.product_id)},
                status=status.HTTP_404_NOT_FOUND,
            )
        except InsufficientStock as exc:
            return Response(
                {
                    "detail": str(exc),
                    "product_id": str(exc.product_id),
                    "requested": exc.requested,
                    "available": exc.available,
                },
                status=status.HTTP_409_CONFLICT,
            )
        except PriceMismatch as exc:
            return Response(
                {"price": [str(exc)]},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except OrderReadFailure as exc:
            return Response(
                {"detail": str(exc), "order_id": str(exc.order_id)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        except TransactionFailure as exc:
            return _storage_failure(exc)

        out = OrderSerializer(result.order)
        code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
        return Response(out.data, status=code)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return self._mutation.order_queryset()

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/?skip=&limit=

        Filtering (status, kind, user, date range) is handled by
        ``OrderFilter`` via ``filter_backends``.
        """
        queryset = self.filter_queryset(self.get_queryset())
        try:
            skip, limit = parse_page_params(request.query_params)
            page = paginate(queryset, skip, limit)
        except InvalidPageRange as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(page_payload("orders", page, OrderSerializer))

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._mutation.get_order(pk)
        except OrderNotFound:
            return _not_found()
        serializer = OrderSerializer(order)
        return Response(serializer.data)

    # ------------------------------------------------------------------
    # Update / Delete
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Updates header fields only.  Fields that do not apply to the
        order's kind are ignored.
        """
        update_serializer = UpdateOrderSerializer(data=request.data)
        update_serializer.is_valid(raise_exception=True)
        try:
            dto = UpdateOrderDTO(**update_serializer.validated_data)
        except pydantic.ValidationError as exc:
            return _invalid_dto(exc)

        try:
            self._mutation.update_order(pk, dto)
        except OrderNotFound:
            return _not_found()
        except TransactionFailure as exc:
            return _storage_failure(exc)

        return Response({"success": True, "message": "Order updated successfully."})

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/"""
        try:
            self._mutation.delete_order(pk)
        except OrderNotFound:
            return _not_found()
        except TransactionFailure as exc:
            return _storage_failure(exc)

        return Response({"success": True, "message": "Order deleted successfully."})
