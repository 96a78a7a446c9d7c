from rest_framework import serializers

from apps.payments.models import PaymentMethod
from apps.receivables.serializers import ReceivableSerializer
from apps.sales.models import Sale

MAX_INSTALLMENTS = 24


class SaleSerializer(serializers.ModelSerializer):
    cashier_username = serializers.CharField(source="cashier.username", read_only=True)
    receivables = ReceivableSerializer(many=True, read_only=True)

    class Meta:
        model = Sale
        fields = [
            "id",
            "cashier",
            "cashier_username",
            "customer_name",
            "total",
            "payment_method",
            "installments",
            "provider",
            "payment_config",
            "cash_session",
            "sale_date",
            "status",
            "cancelled_at",
            "cancel_reason",
            "receivables",
            "created_at",
        ]
        read_only_fields = fields


class SaleListSerializer(serializers.ModelSerializer):
    cashier_username = serializers.CharField(source="cashier.username", read_only=True)

    class Meta:
        model = Sale
        fields = [
            "id",
            "cashier_username",
            "customer_name",
            "total",
            "payment_method",
            "installments",
            "sale_date",
            "status",
            "created_at",
        ]
        read_only_fields = fields


class SaleCreateSerializer(serializers.Serializer):
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    installments = serializers.IntegerField(min_value=1, max_value=MAX_INSTALLMENTS, default=1)
    provider = serializers.CharField(max_length=60, required=False, allow_blank=True, default="")
    payment_config_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    cash_session_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    customer_name = serializers.CharField(max_length=160, required=False, allow_blank=True, default="")
    sale_date = serializers.DateField(required=False, allow_null=True, default=None)

    def validate_total(self, value):
        if value <= 0:
            raise serializers.ValidationError("total must be greater than 0")
        return value

    def validate(self, attrs):
        if attrs["installments"] > 1 and attrs["payment_method"] != PaymentMethod.CREDIT_CARD:
            raise serializers.ValidationError({"installments": "Only credit card sales can be split in installments"})
        return attrs


class SaleCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
