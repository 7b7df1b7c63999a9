import logging
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db.models import DecimalField, ExpressionWrapper, F, Sum
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters as drf_filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from somah_market.stores.models import Product, Store

from .models import Order, OrderItem
from .serializers import (
    AdminUserSerializer,
    CheckoutSerializer,
    OrderDetailSerializer,
    OrderSerializer,
    StatusUpdateSerializer,
)
from .services import (
    ADDRESS_FIELDS,
    CheckoutRequest,
    OrderError,
    OrderLineRequest,
    OrderNotFound,
    place_order,
    update_order_status,
)

User = get_user_model()

logger = logging.getLogger(__name__)


class OrderViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """Заказы текущего покупателя и оформление нового заказа"""

    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["status"]

    def get_queryset(self):
        return (
            Order.objects.filter(customer=self.request.user)
            .prefetch_related("items", "status_history")
            .order_by("-created_at")
        )

    def get_serializer_class(self):
        if self.action == "create":
            return CheckoutSerializer
        if self.action == "retrieve":
            return OrderDetailSerializer
        return OrderSerializer

    def create(self, request, *args, **kwargs):
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        checkout = CheckoutRequest(
            customer=request.user,
            address={name: data.get(name, "") for name in ADDRESS_FIELDS},
            items=[
                OrderLineRequest(
                    product_id=str(item["product_id"]),
                    quantity=item["quantity"],
                    price=item["price"],
                )
                for item in data["items"]
            ],
            payment_method=data["payment_method"],
            notes=data["notes"],
        )

        try:
            order = place_order(checkout)
        except OrderError as exc:
            logger.info("Checkout failed for %s: %s", request.user, exc)
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class AdminOrderViewSet(viewsets.ReadOnlyModelViewSet):
    """Admin console: all orders, filtering by status and status changes."""

    queryset = Order.objects.select_related("customer").prefetch_related(
        "items", "status_history"
    )
    permission_classes = [IsAdminUser]
    filterset_fields = ["status"]
    ordering_fields = ["created_at", "total_amount"]
    ordering = ["-created_at"]

    def get_serializer_class(self):
        if self.action == "retrieve":
            return OrderDetailSerializer
        return OrderSerializer

    @action(detail=True, methods=["put"], url_path="status")
    def update_status(self, request, pk=None):
        if not request.data.get("status"):
            return Response(
                {"error": "Status is required"}, status=status.HTTP_400_BAD_REQUEST
            )

        serializer = StatusUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Invalid status value"}, status=status.HTTP_400_BAD_REQUEST
            )

        try:
            order = update_order_status(
                pk,
                serializer.validated_data["status"],
                notes=serializer.validated_data.get("notes"),
            )
        except OrderNotFound:
            return Response({"error": "Order not found"}, status=status.HTTP_404_NOT_FOUND)
        except OrderError as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        logger.info(
            "Order %s status set to %s by %s", order.order_number, order.status, request.user
        )
        return Response(
            {
                "order": OrderSerializer(order).data,
                "message": f"Order status updated to {order.status}",
            }
        )


class AdminUserViewSet(viewsets.ReadOnlyModelViewSet):
    """Admin console: registered users, newest first."""

    queryset = User.objects.order_by("-date_joined")
    serializer_class = AdminUserSerializer
    permission_classes = [IsAdminUser]
    filter_backends = [DjangoFilterBackend, drf_filters.SearchFilter]
    filterset_fields = ["is_staff", "is_active"]
    search_fields = ["username", "email"]


class AdminDashboardView(APIView):
    permission_classes = [IsAdminUser]

    def get(self, request):
        line_total = ExpressionWrapper(
            F("price") * F("quantity"),
            output_field=DecimalField(max_digits=12, decimal_places=2),
        )
        total_sales = OrderItem.objects.aggregate(total=Sum(line_total))["total"]

        recent_orders = Order.objects.prefetch_related("items").order_by("-created_at")[:5]
        pending_orders = Order.objects.prefetch_related("items").filter(
            status=Order.STATUS_PENDING
        )[:10]

        return Response(
            {
                "statistics": {
                    "userCount": User.objects.count(),
                    "storeCount": Store.objects.count(),
                    "productCount": Product.objects.count(),
                    "orderCount": Order.objects.count(),
                    "totalSales": total_sales or Decimal("0.00"),
                },
                "recentOrders": OrderSerializer(recent_orders, many=True).data,
                "pendingOrders": OrderSerializer(pending_orders, many=True).data,
            }
        )
