import logging

from apps.audit.models import AuditLog
from apps.common.permissions import resolve_role

logger = logging.getLogger(__name__)


def record_audit(*, actor, action, entity_type, entity_id, payload=None):
    role = resolve_role(actor) if actor is not None and actor.is_authenticated else ""
    logger.info("%s %s=%s actor=%s", action, entity_type, entity_id, getattr(actor, "pk", None))
    return AuditLog.objects.create(
        actor=actor if role else None,
        actor_role=role,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        payload=payload or {},
    )
