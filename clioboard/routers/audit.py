from fastapi import APIRouter

from clioboard import audit
from clioboard.models.audit import AuditEntry

router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("")
def list_entries(entity_id: str | None = None, limit: int = 50) -> list[AuditEntry]:
    return audit.list_entries(entity_id, limit)
