from rest_framework.routers import DefaultRouter

from apps.receivables.views import ReceivableViewSet

router = DefaultRouter()
router.register("receivables", ReceivableViewSet, basename="receivable")

urlpatterns = router.urls
