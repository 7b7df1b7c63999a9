from rest_framework import serializers

from .models import Product, Store


class StoreSerializer(serializers.ModelSerializer):
    owner_name = serializers.CharField(
        source='owner.get_full_name', read_only=True, allow_null=True
    )

    class Meta:
        model = Store
        fields = [
            'id', 'name', 'description', 'category', 'phone', 'logo_url',
            'status', 'rating', 'owner_name',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    """Товар в каталоге; ``price`` уже включает доставку."""

    price = serializers.DecimalField(
        source='display_price', max_digits=10, decimal_places=2, read_only=True
    )
    base_price = serializers.DecimalField(
        source='price', max_digits=10, decimal_places=2, read_only=True
    )
    store_name = serializers.CharField(source='store.name', read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'store', 'store_name',
            'name', 'description',
            'price', 'base_price',
            'stock', 'category', 'is_available', 'status',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class StoreStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Store.STATUS_CHOICES)
