from django.urls import include, path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    path("auth/token/", TokenObtainPairView.as_view(), name="token-obtain-pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("", include("apps.banking.urls")),
    path("", include("apps.payments.urls")),
    path("", include("apps.cash_register.urls")),
    path("", include("apps.sales.urls")),
    path("", include("apps.receivables.urls")),
    path("", include("apps.payables.urls")),
    path("", include("apps.ledger.urls")),
    path("", include("apps.reconciliation.urls")),
]
