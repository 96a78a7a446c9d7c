from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.audit.services import record_audit
from apps.cash_register import services
from apps.cash_register.models import CashRegisterSession
from apps.cash_register.serializers import (
    CashMovementInputSerializer,
    CashMovementSerializer,
    CashRegisterSessionListSerializer,
    CashRegisterSessionSerializer,
    CloseSessionSerializer,
    OpenSessionSerializer,
)
from apps.common.exceptions import NotFoundError, ValidationError
from apps.common.permissions import RolePermission


class CashRegisterSessionViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = CashRegisterSession.objects.select_related("operator").prefetch_related("movements__created_by")
    serializer_class = CashRegisterSessionSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["cash.view"],
        "retrieve": ["cash.view"],
        "current": ["cash.view"],
        "report": ["cash.view"],
        "open": ["cash.operate"],
        "sangria": ["cash.operate"],
        "suprimento": ["cash.operate"],
        "close": ["cash.operate"],
    }

    def get_serializer_class(self):
        if self.action == "list":
            return CashRegisterSessionListSerializer
        return CashRegisterSessionSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        terminal = self.request.query_params.get("terminal")
        status_param = self.request.query_params.get("status")
        if terminal:
            queryset = queryset.filter(terminal=terminal)
        if status_param:
            queryset = queryset.filter(status=status_param.upper())
        return queryset

    @action(detail=False, methods=["get"])
    def current(self, request):
        terminal = request.query_params.get("terminal") or request.user.default_terminal
        if not terminal:
            raise ValidationError({"terminal": "La terminal es obligatoria."})
        session = services.current_session(terminal)
        if session is None:
            raise NotFoundError("No hay caja abierta para esta terminal.")
        data = CashRegisterSessionSerializer(session).data
        data["current_balance"] = services.compute_expected(session)
        return Response(data)

    @action(detail=False, methods=["post"])
    def open(self, request):
        serializer = OpenSessionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        terminal = serializer.validated_data["terminal"] or request.user.default_terminal
        session = services.open_session(
            terminal=terminal,
            operator=request.user,
            opening_balance=serializer.validated_data["opening_balance"],
        )
        record_audit(
            actor=request.user,
            action="cash.session.open",
            entity_type="cash_session",
            entity_id=session.id,
            payload={"terminal": session.terminal, "opening_balance": str(session.opening_balance)},
        )
        return Response(CashRegisterSessionSerializer(session).data, status=201)

    @action(detail=True, methods=["post"])
    def sangria(self, request, pk=None):
        return self._movement(request, services.sangria, "cash.sangria")

    @action(detail=True, methods=["post"])
    def suprimento(self, request, pk=None):
        return self._movement(request, services.suprimento, "cash.suprimento")

    def _movement(self, request, operation, audit_action):
        session = self.get_object()
        serializer = CashMovementInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        movement = operation(session_id=session.pk, actor=request.user, **serializer.validated_data)
        record_audit(
            actor=request.user,
            action=audit_action,
            entity_type="cash_session",
            entity_id=session.pk,
            payload={"amount": str(movement.amount), "reason": movement.reason},
        )
        return Response(CashMovementSerializer(movement).data, status=201)

    @action(detail=True, methods=["get"])
    def report(self, request, pk=None):
        return Response(services.session_report(self.get_object()))

    @action(detail=True, methods=["post"])
    def close(self, request, pk=None):
        session = self.get_object()
        serializer = CloseSessionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        session = services.close_session(session_id=session.pk, actor=request.user, **serializer.validated_data)
        record_audit(
            actor=request.user,
            action="cash.session.close",
            entity_type="cash_session",
            entity_id=session.pk,
            payload={
                "expected_balance": str(session.expected_balance),
                "closing_balance": str(session.closing_balance),
                "difference": str(session.difference),
            },
        )
        return Response(
            {
                "id": str(session.pk),
                "status": session.status,
                "expected_balance": session.expected_balance,
                "closing_balance": session.closing_balance,
                "difference": session.difference,
                "closed_at": session.closed_at,
            }
        )
