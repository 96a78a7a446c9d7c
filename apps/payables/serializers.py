from django.utils import timezone
from rest_framework import serializers

from apps.payables.models import Payable, PayableStatus


class PayableSerializer(serializers.ModelSerializer):
    remaining = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    effective_status = serializers.SerializerMethodField()

    class Meta:
        model = Payable
        fields = [
            "id",
            "description",
            "category",
            "supplier_name",
            "amount",
            "total_paid",
            "remaining",
            "due_date",
            "status",
            "effective_status",
            "payment_date",
            "notes",
            "created_by",
            "created_at",
        ]
        read_only_fields = ["id", "total_paid", "status", "payment_date", "created_by", "created_at"]

    def get_effective_status(self, obj):
        return obj.effective_status(self.context.get("today") or timezone.localdate())

    def validate_category(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("category is required")
        return value

    def validate_description(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("description is required")
        return value

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be greater than 0")
        return value

    def validate(self, attrs):
        if self.instance is not None and self.instance.status != PayableStatus.PENDING:
            raise serializers.ValidationError("Only pending payables without payments can be edited")
        return attrs

    def create(self, validated_data):
        validated_data["created_by"] = self.context["request"].user
        return super().create(validated_data)


class PayPayableSerializer(serializers.Serializer):
    amount_paid = serializers.DecimalField(max_digits=12, decimal_places=2)
    payment_date = serializers.DateField(required=False)
    payment_method = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    account_id = serializers.UUIDField(required=False, allow_null=True)
