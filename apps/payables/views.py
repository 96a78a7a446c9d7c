from django.utils import timezone
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.audit.services import record_audit
from apps.common.permissions import RolePermission
from apps.payables import services
from apps.payables.models import Payable
from apps.payables.serializers import PayableSerializer, PayPayableSerializer


class PayableViewSet(viewsets.ModelViewSet):
    queryset = Payable.objects.select_related("created_by")
    serializer_class = PayableSerializer
    permission_classes = [RolePermission]
    http_method_names = ["get", "post", "patch", "head", "options"]
    capability_map = {
        "list": ["payables.view"],
        "retrieve": ["payables.view"],
        "create": ["payables.manage"],
        "partial_update": ["payables.manage"],
        "pay": ["payables.manage"],
        "cancel": ["payables.manage"],
    }

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["today"] = timezone.localdate()
        return context

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        status_param = params.get("status")
        due_from = params.get("due_from")
        due_to = params.get("due_to")
        category = params.get("category")
        if status_param:
            queryset = services.filter_by_status(queryset, status_param)
        if due_from:
            queryset = queryset.filter(due_date__gte=due_from)
        if due_to:
            queryset = queryset.filter(due_date__lte=due_to)
        if category:
            queryset = queryset.filter(category__iexact=category.strip())
        return queryset

    def perform_create(self, serializer):
        payable = serializer.save()
        record_audit(
            actor=self.request.user,
            action="payables.create",
            entity_type="payable",
            entity_id=payable.id,
            payload={
                "category": payable.category,
                "amount": str(payable.amount),
                "due_date": str(payable.due_date),
            },
        )

    def perform_update(self, serializer):
        payable = self.get_object()
        before = {"amount": str(payable.amount), "due_date": str(payable.due_date), "category": payable.category}
        payable = serializer.save()
        after = {"amount": str(payable.amount), "due_date": str(payable.due_date), "category": payable.category}
        record_audit(
            actor=self.request.user,
            action="payables.update",
            entity_type="payable",
            entity_id=payable.id,
            payload={"before": before, "after": after},
        )

    @action(detail=True, methods=["post"])
    def pay(self, request, pk=None):
        payable = self.get_object()
        serializer = PayPayableSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payable, entry = services.pay_payable(payable_id=payable.pk, actor=request.user, **serializer.validated_data)
        record_audit(
            actor=request.user,
            action="payables.pay",
            entity_type="payable",
            entity_id=payable.pk,
            payload={
                "amount_paid": str(entry.amount),
                "total_paid": str(payable.total_paid),
                "bank_account": str(entry.bank_account_id) if entry.bank_account_id else None,
            },
        )
        return Response(self.get_serializer(payable).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        payable = services.cancel_payable(payable_id=self.get_object().pk)
        record_audit(
            actor=request.user,
            action="payables.cancel",
            entity_type="payable",
            entity_id=payable.pk,
            payload={"amount": str(payable.amount)},
        )
        return Response(self.get_serializer(payable).data)
