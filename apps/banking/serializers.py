from rest_framework import serializers

from apps.banking.models import BankAccount


class BankAccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = BankAccount
        fields = [
            "id",
            "name",
            "bank_name",
            "agency",
            "account_number",
            "initial_balance",
            "current_balance",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "current_balance", "created_at", "updated_at"]

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("name is required")
        return value

    def validate_bank_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("bank_name is required")
        return value

    def validate_initial_balance(self, value):
        if self.instance is not None and value != self.instance.initial_balance:
            raise serializers.ValidationError("initial_balance cannot change after the account is created")
        return value

    def create(self, validated_data):
        validated_data["current_balance"] = validated_data.get("initial_balance", 0)
        return super().create(validated_data)
