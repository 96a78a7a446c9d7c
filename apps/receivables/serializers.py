from django.utils import timezone
from rest_framework import serializers

from apps.receivables.models import Receivable


class ReceivableSerializer(serializers.ModelSerializer):
    effective_status = serializers.SerializerMethodField()
    financial_transaction = serializers.SerializerMethodField()

    class Meta:
        model = Receivable
        fields = [
            "id",
            "sale",
            "customer_name",
            "payment_method",
            "installment_number",
            "total_installments",
            "gross_amount",
            "fee_amount",
            "net_amount",
            "fee_percent",
            "days_to_liquidate",
            "receivable_mode",
            "payment_config",
            "bank_account",
            "due_date",
            "status",
            "effective_status",
            "paid_date",
            "cancelled_at",
            "financial_transaction",
            "created_at",
        ]
        read_only_fields = fields

    def get_effective_status(self, obj):
        today = self.context.get("today") or timezone.localdate()
        return obj.effective_status(today)

    def get_financial_transaction(self, obj):
        entry = getattr(obj, "financial_transaction", None)
        return str(entry.pk) if entry is not None else None


class ReceiveSerializer(serializers.Serializer):
    payment_date = serializers.DateField(required=False)
