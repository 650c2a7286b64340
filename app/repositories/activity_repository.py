# app/repositories/activity_repository.py
import json
from sqlalchemy import select, insert

from app.core.database import database
from app.models.db import ActivityLogDB
from app.domain.activity import Activity
from app.domain.ports import ActivityRepository


class SQLActivityRepository(ActivityRepository):
    async def create(self, activity: Activity) -> None:
        await database.execute(
            insert(ActivityLogDB).values(
                actor=activity.actor,
                action=activity.action,
                resource=activity.resource,
                details=json.dumps(activity.details) if activity.details else None,
                created_at=activity.created_at,
            )
        )

    async def list_recent(self, limit: int = 20) -> list[Activity]:
        rows = await database.fetch_all(
            select(ActivityLogDB)
            .order_by(ActivityLogDB.created_at.desc(), ActivityLogDB.id.desc())
            .limit(limit)
        )
        return [
            Activity(
                id=r["id"],
                actor=r["actor"],
                action=r["action"],
                resource=r["resource"],
                details=json.loads(r["details"]) if r["details"] else {},
                created_at=r["created_at"],
            )
            for r in rows
        ]
