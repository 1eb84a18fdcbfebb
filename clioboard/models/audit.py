from datetime import datetime

from pydantic import BaseModel

from clioboard.models.common import Actor


class AuditEntry(BaseModel):
    id: str
    actor: Actor
    action: str
    entity_type: str
    entity_id: str
    previous_state: dict | None = None
    new_state: dict | None = None
    created_at: datetime
