# app/repositories/client_repository.py
from sqlalchemy import select, insert, update

from app.core.database import database
from app.models.db import ClientDB
from app.domain.client import ClientProfile
from app.domain.ports import ClientProfileRepository


def _to_profile(row) -> ClientProfile:
    return ClientProfile(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        is_active=row["is_active"],
        container_quota=row["container_quota"],
        created_at=row["created_at"],
    )


class SQLClientProfileRepository(ClientProfileRepository):
    async def get(self, client_id: str) -> ClientProfile | None:
        row = await database.fetch_one(
            select(ClientDB).where(ClientDB.id == client_id)
        )
        if not row:
            return None
        return _to_profile(row)

    async def list(self) -> list[ClientProfile]:
        rows = await database.fetch_all(select(ClientDB))
        return [_to_profile(r) for r in rows]

    async def upsert(self, profile: ClientProfile) -> None:
        values = dict(
            name=profile.name,
            email=profile.email,
            is_active=profile.is_active,
            container_quota=profile.container_quota,
        )
        async with database.transaction():
            existing = await self.get(profile.id)
            if existing:
                await database.execute(
                    update(ClientDB).where(ClientDB.id == profile.id).values(**values)
                )
            else:
                await database.execute(insert(ClientDB).values(id=profile.id, **values))
