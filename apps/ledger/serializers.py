from rest_framework import serializers

from apps.ledger.models import FinancialTransaction


class FinancialTransactionSerializer(serializers.ModelSerializer):
    is_reconciled = serializers.SerializerMethodField()

    class Meta:
        model = FinancialTransaction
        fields = [
            "id",
            "type",
            "amount",
            "date",
            "category",
            "description",
            "status",
            "payment_method",
            "receivable",
            "payable",
            "bank_account",
            "is_reconciled",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields

    def get_is_reconciled(self, obj):
        return hasattr(obj, "bank_line")
