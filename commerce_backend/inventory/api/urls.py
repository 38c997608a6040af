# inventory/api/urls.py

from django.urls import path

from .views import (
    BulkAdjustmentView,
    ExternalSyncView,
    InventoryHistoryView,
    InventoryLevelListView,
    LowStockAlertListView,
    LowStockView,
    StockAdjustmentView,
)

app_name = "inventory"

urlpatterns = [
    path("adjust/", StockAdjustmentView.as_view(), name="adjust"),
    path("bulk/", BulkAdjustmentView.as_view(), name="bulk"),
    path("external-sync/", ExternalSyncView.as_view(), name="external-sync"),
    path("levels/", InventoryLevelListView.as_view(), name="levels"),
    path("low-stock/", LowStockView.as_view(), name="low-stock"),
    path("history/", InventoryHistoryView.as_view(), name="history"),
    path("alerts/", LowStockAlertListView.as_view(), name="alerts"),
]
