from rest_framework import serializers

from apps.reconciliation.models import BankTransaction


class BankTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = BankTransaction
        fields = [
            "id",
            "bank_account",
            "date",
            "description",
            "amount",
            "status",
            "financial_transaction",
            "matched_at",
            "matched_by",
            "imported_by",
            "created_at",
        ]
        read_only_fields = fields


class ImportStatementSerializer(serializers.Serializer):
    bank_account = serializers.UUIDField()
    records = serializers.ListField(child=serializers.DictField(), required=False)
    raw_text = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)

    def validate(self, attrs):
        if "records" not in attrs and not attrs.get("raw_text"):
            raise serializers.ValidationError("Provide records or raw_text")
        if "records" in attrs and attrs.get("raw_text"):
            raise serializers.ValidationError("Provide records or raw_text, not both")
        return attrs


class MatchSerializer(serializers.Serializer):
    financial_transaction_id = serializers.UUIDField()


class CreateAndMatchSerializer(serializers.Serializer):
    category = serializers.CharField(max_length=80, required=False, allow_blank=True, default="")
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    payment_method = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")


class SettleReceivableSerializer(serializers.Serializer):
    receivable_id = serializers.UUIDField()


class ReconciliationQuerySerializer(serializers.Serializer):
    bank_account = serializers.UUIDField()
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        date_from = attrs.get("date_from")
        date_to = attrs.get("date_to")
        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({"date_from": "date_from must be <= date_to"})
        return attrs
