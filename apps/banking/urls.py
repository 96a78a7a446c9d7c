from rest_framework.routers import DefaultRouter

from apps.banking.views import BankAccountViewSet

router = DefaultRouter()
router.register("bank-accounts", BankAccountViewSet, basename="bank-account")

urlpatterns = router.urls
