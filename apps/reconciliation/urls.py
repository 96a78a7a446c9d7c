from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.reconciliation.views import BankTransactionViewSet, ReconciliationView

router = DefaultRouter()
router.register("bank-transactions", BankTransactionViewSet, basename="bank-transaction")

urlpatterns = [
    path("reconciliation/", ReconciliationView.as_view(), name="reconciliation"),
]
urlpatterns += router.urls
