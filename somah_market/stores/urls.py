from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import AdminStoreViewSet, ProductViewSet, StoreViewSet

router = DefaultRouter()
router.register(r'stores', StoreViewSet, basename='store')
router.register(r'products', ProductViewSet, basename='product')
router.register(r'admin/stores', AdminStoreViewSet, basename='admin-store')

urlpatterns = [
    path('', include(router.urls)),
]
