"""Best-effort audit trail of board changes.

Entries are written after the business transaction has committed, in a
transaction of their own. A failed write is logged and dropped; it never
undoes the change being audited.
"""

import json
import logging

from pydantic import BaseModel

from clioboard.db import get_store, new_id, utcnow
from clioboard.models.audit import AuditEntry
from clioboard.models.common import Actor

logger = logging.getLogger(__name__)


def _snapshot(state: BaseModel | None) -> str | None:
    if state is None:
        return None
    return json.dumps(state.model_dump(mode="json"))


def record(
    actor: Actor,
    action: str,
    entity_type: str,
    entity_id: str,
    previous: BaseModel | None = None,
    new: BaseModel | None = None,
) -> None:
    try:
        with get_store().transaction() as conn:
            conn.execute(
                "INSERT INTO audit_log (id, actor, action, entity_type, entity_id, "
                "previous_state, new_state, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (new_id(), actor, action, entity_type, entity_id,
                 _snapshot(previous), _snapshot(new), utcnow()),
            )
    except Exception:
        logger.warning(f"Failed to write audit entry {action} for {entity_type} {entity_id}", exc_info=True)


def list_entries(entity_id: str | None = None, limit: int = 50) -> list[AuditEntry]:
    """Most recent entries first, optionally for one entity."""
    query = "SELECT * FROM audit_log"
    params: list = []
    if entity_id:
        query += " WHERE entity_id = ?"
        params.append(entity_id)
    query += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
    params.append(limit)
    with get_store().connection() as conn:
        rows = conn.execute(query, params).fetchall()
    entries = []
    for row in rows:
        data = dict(row)
        for key in ("previous_state", "new_state"):
            if data[key]:
                data[key] = json.loads(data[key])
        entries.append(AuditEntry(**data))
    return entries
