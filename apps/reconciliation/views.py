from rest_framework import generics, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.audit.services import record_audit
from apps.common.permissions import RolePermission
from apps.ledger.serializers import FinancialTransactionSerializer
from apps.reconciliation import services
from apps.reconciliation.models import BankTransaction
from apps.reconciliation.serializers import (
    BankTransactionSerializer,
    CreateAndMatchSerializer,
    ImportStatementSerializer,
    MatchSerializer,
    ReconciliationQuerySerializer,
    SettleReceivableSerializer,
)


class BankTransactionViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = BankTransaction.objects.all()
    serializer_class = BankTransactionSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["reconciliation.view"],
        "retrieve": ["reconciliation.view"],
        "import_statement": ["reconciliation.manage"],
        "match": ["reconciliation.manage"],
        "create_and_match": ["reconciliation.manage"],
        "settle_receivable": ["reconciliation.manage"],
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        status_param = params.get("status")
        bank_account = params.get("bank_account")
        date_from = params.get("date_from")
        date_to = params.get("date_to")
        if status_param:
            queryset = queryset.filter(status=status_param.upper())
        if bank_account:
            queryset = queryset.filter(bank_account_id=bank_account)
        if date_from:
            queryset = queryset.filter(date__gte=date_from)
        if date_to:
            queryset = queryset.filter(date__lte=date_to)
        return queryset

    @action(detail=False, methods=["post"], url_path="import")
    def import_statement(self, request):
        serializer = ImportStatementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.import_statement(
            bank_account_id=serializer.validated_data["bank_account"],
            records=serializer.validated_data.get("records"),
            raw_text=serializer.validated_data.get("raw_text"),
            actor=request.user,
        )
        record_audit(
            actor=request.user,
            action="reconciliation.import",
            entity_type="bank_account",
            entity_id=serializer.validated_data["bank_account"],
            payload={
                "created": len(result.created),
                "skipped_duplicates": result.skipped_duplicates,
                "invalid_lines": result.invalid_lines,
            },
        )
        return Response(
            {
                "created": BankTransactionSerializer(result.created, many=True).data,
                "created_count": len(result.created),
                "skipped_duplicates": result.skipped_duplicates,
                "invalid_lines": result.invalid_lines,
            },
            status=201,
        )

    @action(detail=True, methods=["post"])
    def match(self, request, pk=None):
        serializer = MatchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        line = services.match(
            bank_transaction_id=self.get_object().pk,
            financial_transaction_id=serializer.validated_data["financial_transaction_id"],
            actor=request.user,
        )
        self._audit(request, "reconciliation.match", line)
        return Response(BankTransactionSerializer(line).data)

    @action(detail=True, methods=["post"], url_path="create-and-match")
    def create_and_match(self, request, pk=None):
        serializer = CreateAndMatchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        line = services.create_and_match(
            bank_transaction_id=self.get_object().pk,
            data=serializer.validated_data,
            actor=request.user,
        )
        self._audit(request, "reconciliation.create_and_match", line)
        return Response(BankTransactionSerializer(line).data, status=201)

    @action(detail=True, methods=["post"], url_path="settle-receivable")
    def settle_receivable(self, request, pk=None):
        serializer = SettleReceivableSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        line = services.settle_receivable_and_match(
            bank_transaction_id=self.get_object().pk,
            receivable_id=serializer.validated_data["receivable_id"],
            actor=request.user,
        )
        self._audit(request, "reconciliation.settle_receivable", line)
        return Response(BankTransactionSerializer(line).data)

    @staticmethod
    def _audit(request, action_name, line):
        record_audit(
            actor=request.user,
            action=action_name,
            entity_type="bank_transaction",
            entity_id=line.pk,
            payload={"amount": str(line.amount), "financial_transaction": str(line.financial_transaction_id)},
        )


class ReconciliationView(generics.GenericAPIView):
    permission_classes = [RolePermission]
    capability_map = {
        "get": ["reconciliation.view"],
    }

    def get(self, request, *args, **kwargs):
        query = ReconciliationQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        view = services.reconciliation_view(
            bank_account_id=query.validated_data["bank_account"],
            date_from=query.validated_data.get("date_from"),
            date_to=query.validated_data.get("date_to"),
        )
        return Response(
            {
                "range": {"date_from": view["date_from"], "date_to": view["date_to"]},
                "bank_lines": BankTransactionSerializer(view["bank_lines"], many=True).data,
                "system_entries": FinancialTransactionSerializer(view["system_entries"], many=True).data,
            }
        )
