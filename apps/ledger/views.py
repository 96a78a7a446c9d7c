from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.common.permissions import RolePermission
from apps.ledger.models import FinancialTransaction
from apps.ledger.serializers import FinancialTransactionSerializer
from apps.ledger.services import cash_flow_summary


class FinancialTransactionViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = FinancialTransaction.objects.select_related("bank_line")
    serializer_class = FinancialTransactionSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["receivables.view", "payables.view"],
        "retrieve": ["receivables.view", "payables.view"],
        "summary": ["receivables.view", "payables.view"],
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        tx_type = params.get("type")
        category = params.get("category")
        bank_account = params.get("bank_account")
        date_from = params.get("date_from")
        date_to = params.get("date_to")

        if tx_type:
            queryset = queryset.filter(type=tx_type.upper())
        if category:
            queryset = queryset.filter(category__iexact=category)
        if bank_account:
            queryset = queryset.filter(bank_account_id=bank_account)
        if date_from:
            queryset = queryset.filter(date__gte=date_from)
        if date_to:
            queryset = queryset.filter(date__lte=date_to)
        return queryset

    @action(detail=False, methods=["get"])
    def summary(self, request):
        return Response(cash_flow_summary(self.get_queryset()))
