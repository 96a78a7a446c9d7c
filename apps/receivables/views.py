from django.utils import timezone
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.audit.services import record_audit
from apps.common.permissions import RolePermission
from apps.receivables import services
from apps.receivables.models import Receivable
from apps.receivables.serializers import ReceivableSerializer, ReceiveSerializer


class ReceivableViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Receivable.objects.select_related("financial_transaction")
    serializer_class = ReceivableSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["receivables.view"],
        "retrieve": ["receivables.view"],
        "summary": ["receivables.view"],
        "receive": ["receivables.manage"],
        "cancel": ["receivables.manage"],
    }

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["today"] = self.today
        return context

    @property
    def today(self):
        if not hasattr(self, "_today"):
            self._today = timezone.localdate()
        return self._today

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        status_param = params.get("status")
        due_from = params.get("due_from")
        due_to = params.get("due_to")
        sale = params.get("sale")
        payment_method = params.get("payment_method")

        if status_param:
            queryset = services.filter_by_status(queryset, status_param, self.today)
        if due_from:
            queryset = queryset.filter(due_date__gte=due_from)
        if due_to:
            queryset = queryset.filter(due_date__lte=due_to)
        if sale:
            queryset = queryset.filter(sale_id=sale)
        if payment_method:
            queryset = queryset.filter(payment_method=payment_method.upper())
        return queryset

    def list(self, request, *args, **kwargs):
        services.auto_settle_due(today=self.today)
        return super().list(request, *args, **kwargs)

    def retrieve(self, request, *args, **kwargs):
        receivable = self.get_object()
        services.maybe_settle(receivable.pk, today=self.today)
        receivable = self.get_queryset().get(pk=receivable.pk)
        return Response(self.get_serializer(receivable).data)

    @action(detail=False, methods=["get"])
    def summary(self, request):
        services.auto_settle_due(today=self.today)
        return Response(services.summary(self.get_queryset(), self.today))

    @action(detail=True, methods=["post"])
    def receive(self, request, pk=None):
        receivable = self.get_object()
        serializer = ReceiveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        receivable, entry = services.receive(
            receivable_id=receivable.pk,
            payment_date=serializer.validated_data.get("payment_date"),
            actor=request.user,
        )
        record_audit(
            actor=request.user,
            action="receivables.receive",
            entity_type="receivable",
            entity_id=receivable.pk,
            payload={"net_amount": str(receivable.net_amount), "financial_transaction": str(entry.pk)},
        )
        return Response(self.get_serializer(self.get_queryset().get(pk=receivable.pk)).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        receivable = services.cancel(receivable_id=self.get_object().pk)
        record_audit(
            actor=request.user,
            action="receivables.cancel",
            entity_type="receivable",
            entity_id=receivable.pk,
            payload={"gross_amount": str(receivable.gross_amount)},
        )
        return Response(self.get_serializer(receivable).data)
