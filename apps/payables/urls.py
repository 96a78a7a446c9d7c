from rest_framework.routers import DefaultRouter

from apps.payables.views import PayableViewSet

router = DefaultRouter()
router.register("payables", PayableViewSet, basename="payable")

urlpatterns = router.urls
