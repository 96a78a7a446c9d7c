from rest_framework.routers import DefaultRouter

from apps.ledger.views import FinancialTransactionViewSet

router = DefaultRouter()
router.register("financial-transactions", FinancialTransactionViewSet, basename="financial-transaction")

urlpatterns = router.urls
