"""
Audit logging service for tracking administrative changes.
"""
import json
from typing import Optional, Any
from sqlalchemy.ext.asyncio import AsyncSession

from coffee_pairing.core.security import CallerIdentity
from coffee_pairing.models.audit_log import AuditLog


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    if hasattr(value, "value"):  # Handle enums
        return str(value.value)
    return str(value)


def _normalize(value: Any) -> Any:
    if hasattr(value, "value"):  # Handle enums
        return value.value
    if hasattr(value, "isoformat"):  # Handle datetime
        return value.isoformat()
    return value


async def log_audit(
    db: AsyncSession,
    entity_type: str,
    entity_id: int,
    action: str,
    organization_id: Optional[int],
    actor: Optional[CallerIdentity] = None,
    field_name: Optional[str] = None,
    old_value: Any = None,
    new_value: Any = None,
    changes: Optional[dict] = None,
    description: Optional[str] = None,
) -> AuditLog:
    """
    Create an audit log entry.

    Args:
        db: Database session
        entity_type: Type of entity (e.g., "AlgorithmSetting", "PairingPeriod")
        entity_id: ID of the entity
        action: Action performed (UPDATE, STATUS_CHANGE, EXECUTE)
        organization_id: Organization the entity belongs to
        actor: Caller who performed the action, None for the scheduler
        field_name: Specific field that changed (for single field changes)
        old_value: Previous value
        new_value: New value
        changes: Dictionary of all changes (for multiple field changes)
        description: Human-readable description of the action
    """
    audit_log = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=actor.id if actor else None,
        organization_id=organization_id,
        field_name=field_name,
        old_value=_to_text(old_value),
        new_value=_to_text(new_value),
        changes=changes,
        description=description,
    )

    db.add(audit_log)
    await db.flush()

    return audit_log


async def log_update(
    db: AsyncSession,
    entity: Any,
    entity_type: str,
    old_values: dict,
    new_values: dict,
    organization_id: Optional[int],
    actor: Optional[CallerIdentity] = None,
    description: Optional[str] = None,
) -> Optional[AuditLog]:
    """
    Log an UPDATE action for an entity.
    Only logs if there are actual changes.
    """
    changes = {}

    for key, new_val in new_values.items():
        old_val = _normalize(old_values.get(key))
        new_val = _normalize(new_val)
        if old_val != new_val:
            changes[key] = {"old": old_val, "new": new_val}

    if not changes:
        return None

    desc = description or f"Updated {entity_type}: {', '.join(changes)}"

    return await log_audit(
        db=db,
        entity_type=entity_type,
        entity_id=entity.id,
        action="UPDATE",
        organization_id=organization_id,
        actor=actor,
        changes=changes,
        description=desc,
    )


async def log_status_change(
    db: AsyncSession,
    entity: Any,
    entity_type: str,
    old_status: Any,
    new_status: Any,
    organization_id: Optional[int],
    actor: Optional[CallerIdentity] = None,
    description: Optional[str] = None,
) -> AuditLog:
    """Log a STATUS_CHANGE action for an entity."""
    old_text = _to_text(old_status)
    new_text = _to_text(new_status)
    return await log_audit(
        db=db,
        entity_type=entity_type,
        entity_id=entity.id,
        action="STATUS_CHANGE",
        organization_id=organization_id,
        actor=actor,
        field_name="status",
        old_value=old_text,
        new_value=new_text,
        description=description or f"Changed status from {old_text} to {new_text}",
    )
