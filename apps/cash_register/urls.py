from rest_framework.routers import DefaultRouter

from apps.cash_register.views import CashRegisterSessionViewSet

router = DefaultRouter()
router.register("cash-sessions", CashRegisterSessionViewSet, basename="cash-session")

urlpatterns = router.urls
