# orders/api/urls.py

"""
ORDERS API URLS

    GET/POST /api/orders/
    GET      /api/orders/<uuid>/
    POST     /api/orders/<uuid>/status/
    POST     /api/orders/<uuid>/pay/
    POST     /api/orders/<uuid>/refund/
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import OrderViewSet

router = SimpleRouter()
router.register(r"", OrderViewSet, basename="orders")

urlpatterns = [
    path("", include(router.urls)),
]
