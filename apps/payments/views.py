from rest_framework import viewsets
from rest_framework.response import Response

from apps.audit.services import record_audit
from apps.common.permissions import RolePermission
from apps.payments.models import PaymentMethodConfig
from apps.payments.serializers import PaymentMethodConfigSerializer
from apps.payments.services import delete_config


class PaymentMethodConfigViewSet(viewsets.ModelViewSet):
    queryset = PaymentMethodConfig.objects.select_related("bank_account")
    serializer_class = PaymentMethodConfigSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["payments.view"],
        "retrieve": ["payments.view"],
        "create": ["payments.manage"],
        "partial_update": ["payments.manage"],
        "update": ["payments.manage"],
        "destroy": ["payments.manage"],
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        method = self.request.query_params.get("method")
        active = self.request.query_params.get("is_active")
        if method:
            queryset = queryset.filter(method=method.upper())
        if active is not None:
            queryset = queryset.filter(is_active=active.lower() in {"1", "true", "yes"})
        return queryset

    def perform_create(self, serializer):
        config = serializer.save()
        record_audit(
            actor=self.request.user,
            action="payments.config.create",
            entity_type="payment_config",
            entity_id=config.id,
            payload=self._audit_payload(config),
        )

    def perform_update(self, serializer):
        config = serializer.save()
        record_audit(
            actor=self.request.user,
            action="payments.config.update",
            entity_type="payment_config",
            entity_id=config.id,
            payload=self._audit_payload(config),
        )

    def destroy(self, request, *args, **kwargs):
        config = self.get_object()
        detached = delete_config(config.pk)
        record_audit(
            actor=request.user,
            action="payments.config.delete",
            entity_type="payment_config",
            entity_id=config.pk,
            payload={"detached_receivables": detached["receivables"], "detached_sales": detached["sales"]},
        )
        return Response(status=204)

    @staticmethod
    def _audit_payload(config):
        return {
            "method": config.method,
            "fee_percent": str(config.fee_percent),
            "days_to_liquidate": config.days_to_liquidate,
            "receivable_mode": config.receivable_mode,
        }
