from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from .models import DeviceState, utcnow
from .repository import Repository

states = Repository(DeviceState)

async def get_state(db: AsyncSession, device_id: str) -> Optional[DeviceState]:
    return await states.find_one(db, {"device_id": device_id})

async def set_state(db: AsyncSession, device_id: str, led: Optional[bool]) -> DeviceState:
    """Create or overwrite the LED state of a device; the last write wins.

    An omitted ``led`` leaves the stored value alone (false on creation)
    but still refreshes ``updated_at``.
    """
    fields = {"updated_at": utcnow()}
    if led is not None:
        fields["led"] = led
    return await states.upsert(db, {"device_id": device_id}, fields)
