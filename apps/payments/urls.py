from rest_framework.routers import DefaultRouter

from apps.payments.views import PaymentMethodConfigViewSet

router = DefaultRouter()
router.register("payment-configs", PaymentMethodConfigViewSet, basename="payment-config")

urlpatterns = router.urls
