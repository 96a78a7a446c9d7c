from rest_framework import serializers

from apps.payments.models import PaymentMethod, PaymentMethodConfig, ReceivableMode


class PaymentMethodConfigSerializer(serializers.ModelSerializer):
    bank_account_name = serializers.CharField(source="bank_account.name", read_only=True, default=None)

    class Meta:
        model = PaymentMethodConfig
        fields = [
            "id",
            "name",
            "method",
            "provider",
            "installments_min",
            "installments_max",
            "fee_percent",
            "days_to_liquidate",
            "receivable_mode",
            "bank_account",
            "bank_account_name",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_fee_percent(self, value):
        if value < 0 or value > 100:
            raise serializers.ValidationError("fee_percent must be between 0 and 100")
        return value

    def validate_installments_min(self, value):
        if value < 1:
            raise serializers.ValidationError("installments_min must be >= 1")
        return value

    def validate(self, attrs):
        method = attrs.get("method", getattr(self.instance, "method", None))
        installments_min = attrs.get("installments_min", getattr(self.instance, "installments_min", 1))
        installments_max = attrs.get("installments_max", getattr(self.instance, "installments_max", 1))
        if installments_max < installments_min:
            raise serializers.ValidationError({"installments_max": "installments_max must be >= installments_min"})
        if method != PaymentMethod.CREDIT_CARD and installments_max > 1:
            raise serializers.ValidationError({"installments_max": "Only credit card configs can span installments"})

        bank_account = attrs.get("bank_account", getattr(self.instance, "bank_account", None))
        if bank_account is not None and method == PaymentMethod.CASH:
            raise serializers.ValidationError({"bank_account": "Cash is counted in the register, not in a bank account"})
        if method == PaymentMethod.CASH:
            days = attrs.get("days_to_liquidate", getattr(self.instance, "days_to_liquidate", 0))
            mode = attrs.get("receivable_mode", getattr(self.instance, "receivable_mode", ReceivableMode.IMMEDIATE))
            if days != 0 or mode != ReceivableMode.IMMEDIATE:
                raise serializers.ValidationError(
                    {"days_to_liquidate": "Cash settles on the sale date with immediate mode"}
                )
        if bank_account is not None and not bank_account.is_active:
            raise serializers.ValidationError({"bank_account": "Bank account is inactive"})
        return attrs
