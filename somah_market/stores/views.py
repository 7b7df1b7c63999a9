import logging

from rest_framework import filters as drf_filters, status, viewsets
from rest_framework.generics import get_object_or_404
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from .models import Product, Store
from .serializers import ProductSerializer, StoreSerializer, StoreStatusUpdateSerializer

logger = logging.getLogger(__name__)


def active_products():
    return Product.objects.select_related("store").filter(
        status=Product.STATUS_ACTIVE, is_available=True
    )


class StoreViewSet(viewsets.ReadOnlyModelViewSet):
    """Публичный список активных магазинов"""

    queryset = Store.objects.select_related("owner").filter(status=Store.STATUS_ACTIVE)
    serializer_class = StoreSerializer
    permission_classes = [AllowAny]
    filter_backends = [DjangoFilterBackend, drf_filters.SearchFilter]
    filterset_fields = ["category"]
    search_fields = ["name"]

    @action(detail=True, methods=["get"])
    def products(self, request, pk=None):
        """Товары одного магазина"""
        store = get_object_or_404(self.get_queryset(), pk=pk)
        queryset = self.filter_queryset_for_products(active_products().filter(store=store))
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(ProductSerializer(page, many=True).data)
        return Response(ProductSerializer(queryset, many=True).data)

    def filter_queryset_for_products(self, queryset):
        category = self.request.query_params.get("category")
        if category:
            queryset = queryset.filter(category=category)
        search = self.request.query_params.get("search")
        if search:
            queryset = queryset.filter(name__icontains=search)
        return queryset.order_by("name")


class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    """Публичный каталог товаров"""

    queryset = active_products().order_by("name")
    serializer_class = ProductSerializer
    permission_classes = [AllowAny]
    filter_backends = [
        DjangoFilterBackend,
        drf_filters.SearchFilter,
        drf_filters.OrderingFilter,
    ]
    filterset_fields = ["store", "category"]
    search_fields = ["name"]
    ordering_fields = ["price", "created_at"]


class AdminStoreViewSet(viewsets.ReadOnlyModelViewSet):
    """Admin console: all stores and their moderation status."""

    queryset = Store.objects.select_related("owner").order_by("-created_at")
    serializer_class = StoreSerializer
    permission_classes = [IsAdminUser]
    filterset_fields = ["status"]

    @action(detail=True, methods=["put"], url_path="status")
    def update_status(self, request, pk=None):
        if not request.data.get("status"):
            return Response(
                {"error": "Status is required"}, status=status.HTTP_400_BAD_REQUEST
            )

        serializer = StoreStatusUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Invalid status value"}, status=status.HTTP_400_BAD_REQUEST
            )

        store = self.get_object()
        store.status = serializer.validated_data["status"]
        store.save(update_fields=["status", "updated_at"])

        logger.info("Store %s status set to %s by %s", store.pk, store.status, request.user)
        return Response(StoreSerializer(store).data)
