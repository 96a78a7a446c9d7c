from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.accounts.models import UserRole
from apps.audit.services import record_audit
from apps.common.permissions import RolePermission, resolve_role
from apps.sales import services
from apps.sales.models import Sale
from apps.sales.serializers import SaleCancelSerializer, SaleCreateSerializer, SaleListSerializer, SaleSerializer


class SaleViewSet(viewsets.ModelViewSet):
    queryset = Sale.objects.select_related("cashier").prefetch_related("receivables__financial_transaction")
    serializer_class = SaleSerializer
    permission_classes = [RolePermission]
    http_method_names = ["get", "post", "delete", "head", "options"]
    capability_map = {
        "list": ["sales.view"],
        "retrieve": ["sales.view"],
        "create": ["sales.create"],
        "cancel": ["sales.cancel"],
        "destroy": ["sales.delete"],
    }

    def get_serializer_class(self):
        if self.action == "list":
            return SaleListSerializer
        return SaleSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        status_param = params.get("status")
        payment_method = params.get("payment_method")
        cash_session = params.get("cash_session")
        date_from = params.get("date_from")
        date_to = params.get("date_to")
        if status_param:
            queryset = queryset.filter(status=status_param.upper())
        if payment_method:
            queryset = queryset.filter(payment_method=payment_method.upper())
        if cash_session:
            queryset = queryset.filter(cash_session_id=cash_session)
        if date_from:
            queryset = queryset.filter(sale_date__gte=date_from)
        if date_to:
            queryset = queryset.filter(sale_date__lte=date_to)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = SaleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sale, receivables = services.create_sale(cashier=request.user, **serializer.validated_data)
        record_audit(
            actor=request.user,
            action="sale.create",
            entity_type="sale",
            entity_id=sale.id,
            payload={
                "total": str(sale.total),
                "payment_method": sale.payment_method,
                "installments": sale.installments,
                "receivables": [str(item.id) for item in receivables],
            },
        )
        return Response(SaleSerializer(self.get_queryset().get(pk=sale.pk)).data, status=201)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        sale = self.get_object()
        if resolve_role(request.user) == UserRole.CASHIER and sale.cashier_id != request.user.id:
            return Response(
                {"code": "forbidden", "detail": "Cajero solo puede cancelar sus propias ventas.", "fields": {}},
                status=403,
            )
        serializer = SaleCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sale, cancelled = services.cancel_sale(sale_id=sale.pk, reason=serializer.validated_data["reason"])
        record_audit(
            actor=request.user,
            action="sale.cancel",
            entity_type="sale",
            entity_id=sale.id,
            payload={"reason": sale.cancel_reason, "cancelled_receivables": cancelled},
        )
        return Response(SaleSerializer(self.get_queryset().get(pk=sale.pk)).data)

    def destroy(self, request, *args, **kwargs):
        sale = self.get_object()
        removed = services.delete_sale(sale_id=sale.pk)
        record_audit(
            actor=request.user,
            action="sale.delete",
            entity_type="sale",
            entity_id=sale.pk,
            payload={"total": str(sale.total), "removed_receivables": removed},
        )
        return Response(status=204)
