from rest_framework import viewsets

from apps.audit.services import record_audit
from apps.banking.models import BankAccount
from apps.banking.serializers import BankAccountSerializer
from apps.common.exceptions import ConflictError
from apps.common.permissions import RolePermission


class BankAccountViewSet(viewsets.ModelViewSet):
    queryset = BankAccount.objects.all()
    serializer_class = BankAccountSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["banking.view"],
        "retrieve": ["banking.view"],
        "create": ["banking.manage"],
        "partial_update": ["banking.manage"],
        "update": ["banking.manage"],
        "destroy": ["banking.manage"],
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        active = self.request.query_params.get("is_active")
        if active is not None:
            queryset = queryset.filter(is_active=active.lower() in {"1", "true", "yes"})
        return queryset

    def perform_create(self, serializer):
        account = serializer.save()
        record_audit(
            actor=self.request.user,
            action="banking.account.create",
            entity_type="bank_account",
            entity_id=account.id,
            payload={"initial_balance": str(account.initial_balance)},
        )

    def perform_destroy(self, instance):
        if instance.payment_configs.exists():
            raise ConflictError("La cuenta esta vinculada a una configuracion de pago. Quita el vinculo antes de eliminarla.")
        if (
            instance.financial_transactions.exists()
            or instance.statement_lines.exists()
            or instance.receivables.exists()
        ):
            raise ConflictError("La cuenta tiene movimientos registrados. Desactivala en lugar de eliminarla.")
        record_audit(
            actor=self.request.user,
            action="banking.account.delete",
            entity_type="bank_account",
            entity_id=instance.id,
            payload={"current_balance": str(instance.current_balance)},
        )
        super().perform_destroy(instance)
