from rest_framework import serializers

from apps.cash_register.models import CashMovement, CashRegisterSession


class CashMovementSerializer(serializers.ModelSerializer):
    created_by_username = serializers.CharField(source="created_by.username", read_only=True)

    class Meta:
        model = CashMovement
        fields = ["id", "session", "direction", "amount", "reason", "created_by", "created_by_username", "created_at"]
        read_only_fields = fields


class CashRegisterSessionSerializer(serializers.ModelSerializer):
    operator_username = serializers.CharField(source="operator.username", read_only=True)
    movements = CashMovementSerializer(many=True, read_only=True)

    class Meta:
        model = CashRegisterSession
        fields = [
            "id",
            "terminal",
            "operator",
            "operator_username",
            "status",
            "opening_balance",
            "closing_balance",
            "expected_balance",
            "difference",
            "notes",
            "opened_at",
            "closed_at",
            "closed_by",
            "movements",
        ]
        read_only_fields = fields


class CashRegisterSessionListSerializer(serializers.ModelSerializer):
    operator_username = serializers.CharField(source="operator.username", read_only=True)

    class Meta:
        model = CashRegisterSession
        fields = [
            "id",
            "terminal",
            "operator_username",
            "status",
            "opening_balance",
            "closing_balance",
            "expected_balance",
            "difference",
            "opened_at",
            "closed_at",
        ]
        read_only_fields = fields


class OpenSessionSerializer(serializers.Serializer):
    terminal = serializers.CharField(max_length=60, required=False, allow_blank=True, default="")
    opening_balance = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class CashMovementInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class CloseSessionSerializer(serializers.Serializer):
    closing_balance = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    notes = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
