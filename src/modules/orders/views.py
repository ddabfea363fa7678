"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes. The view never swallows generic exceptions.
"""

from __future__ import annotations

from typing import Optional

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import BasePermission, IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.settings import api_settings
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.orders.dtos import (
    CreateOrderDTO,
    ListOrdersDTO,
    StatisticsQueryDTO,
    UpdateOrderStatusDTO,
)
from modules.orders.exceptions import (
    EditConflict,
    InsufficientStock,
    InvalidTransition,
    OrderInternalError,
    OrderNotFound,
    OrderValidationFailed,
)
from modules.orders.serializers import (
    AdminOrderSerializer,
    OrderSerializer,
    OrderStatisticsSerializer,
)
from modules.orders.services import build_order_service
from modules.products.exceptions import ProductNotFound

NOT_FOUND_MESSAGE = "The requested resource could not be found."
INTERNAL_ERROR_MESSAGE = (
    "The server encountered a problem and could not process your request."
)


def _not_found() -> Response:
    return Response({"detail": NOT_FOUND_MESSAGE}, status=status.HTTP_404_NOT_FOUND)


def _internal_error() -> Response:
    return Response(
        {"detail": INTERNAL_ERROR_MESSAGE},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _validation_failed(exc: OrderValidationFailed) -> Response:
    return Response({"errors": exc.errors}, status=status.HTTP_400_BAD_REQUEST)


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.

    Customers see their own orders; staff see every order (admin
    projection) and are the only ones allowed to change status.
    """

    lookup_value_regex = r"\d+"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_permissions(self) -> list[BasePermission]:
        if self.action in {"partial_update", "statistics"}:
            return [IsAdminUser()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: Optional[str]
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "statistics"}:
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

        Body: ``{"items": [{"product_id": 1, "quantity": 2}, ...]}``.
        The order is placed on behalf of the authenticated user.
        """
        try:
            dto = CreateOrderDTO.from_payload(request.user.id, request.data)
            order = self._service.create_order(dto)
        except OrderValidationFailed as exc:
            return _validation_failed(exc)
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except InsufficientStock as exc:
            return Response(
                {
                    "detail": str(exc),
                    "product_name": exc.product_name,
                    "requested": exc.requested,
                    "available": exc.available,
                },
                status=status.HTTP_409_CONFLICT,
            )
        except OrderInternalError:
            return _internal_error()

        headers = {"Location": f"{request.path.rstrip('/')}/{order.id}/"}
        return Response(
            OrderSerializer(order).data,
            status=status.HTTP_201_CREATED,
            headers=headers,
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Query params: ``page``, ``page_size``, ``sort`` and, for staff,
        ``name`` (customer name) and ``status``.
        """
        is_staff = request.user.is_staff
        try:
            query = ListOrdersDTO.from_query(
                user_id=None if is_staff else request.user.id,
                params=request.query_params,
                default_page_size=api_settings.PAGE_SIZE or 20,
            )
        except OrderValidationFailed as exc:
            return _validation_failed(exc)

        try:
            page = self._service.list_orders(query)
        except OrderInternalError:
            return _internal_error()

        serializer_class = AdminOrderSerializer if is_staff else OrderSerializer
        return Response(
            {
                "results": serializer_class(page.orders, many=True).data,
                "metadata": page.metadata.as_dict(),
            }
        )

    def retrieve(self, request: Request, pk: Optional[str] = None) -> Response:
        """GET /api/v1/orders/{pk}/

        Orders of other customers are reported as not found.
        """
        try:
            order = self._service.get_order(int(pk))
        except (OrderNotFound, TypeError, ValueError):
            return _not_found()
        except OrderInternalError:
            return _internal_error()

        if request.user.is_staff:
            return Response(AdminOrderSerializer(order).data)
        if order.user_id != request.user.id:
            return _not_found()
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: Optional[str] = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Body: ``{"status": "SHIPPED", "version": 2}``.  ``version`` must be
        the value the caller last read; a stale one yields 409.
        """
        try:
            order_id = int(pk)
        except (TypeError, ValueError):
            return _not_found()

        try:
            dto = UpdateOrderStatusDTO.from_payload(request.data)
            order = self._service.update_status(
                order_id=order_id,
                new_status=dto.status,
                expected_version=dto.version,
            )
        except OrderValidationFailed as exc:
            return _validation_failed(exc)
        except OrderNotFound:
            return _not_found()
        except EditConflict:
            return Response(
                {
                    "detail": "Unable to update the record due to an edit "
                    "conflict, please try again."
                },
                status=status.HTTP_409_CONFLICT,
            )
        except InvalidTransition as exc:
            return Response(
                {"errors": {"status": str(exc)}},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except OrderInternalError:
            return _internal_error()

        return Response(AdminOrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"])
    def statistics(self, request: Request) -> Response:
        """GET /api/v1/orders/statistics/?start_date=YYYY-MM-DD&end_date=YYYY-MM-DD"""
        try:
            query = StatisticsQueryDTO.from_query(request.query_params)
        except OrderValidationFailed as exc:
            return _validation_failed(exc)

        try:
            stats = self._service.get_statistics(query)
        except OrderInternalError:
            return _internal_error()

        return Response(
            {
                "statistics": OrderStatisticsSerializer(stats).data,
                "date_range": {
                    "start_date": stats.start_date.isoformat(),
                    "end_date": stats.end_date.isoformat(),
                },
            }
        )
