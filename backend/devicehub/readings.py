from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession
from .models import SensorReading
from .repository import Repository

DEFAULT_HISTORY_LIMIT = 100
# largest value a signed 64-bit LIMIT accepts
MAX_HISTORY_LIMIT = 2**63 - 1

sensor_readings = Repository(SensorReading)

def parse_limit(raw: Union[str, int, None]) -> int:
    """Positive integer from a query value, else the default.

    Leading digits are honoured the way ``parseInt`` reads them ("5abc" -> 5).
    """
    if isinstance(raw, int):
        return min(raw, MAX_HISTORY_LIMIT) if raw > 0 else DEFAULT_HISTORY_LIMIT
    text = (raw or "").strip()
    digits = ""
    for i, ch in enumerate(text):
        if ch.isdigit() or (i == 0 and ch in "+-"):
            digits += ch
        else:
            break
    try:
        value = int(digits)
    except ValueError:
        return DEFAULT_HISTORY_LIMIT
    if value <= 0:
        return DEFAULT_HISTORY_LIMIT
    return min(value, MAX_HISTORY_LIMIT)

def placeholder(device_id: str) -> Dict[str, Any]:
    return {"device_id": device_id, "temperature": None, "humidity": None, "timestamp": None}

async def record(db: AsyncSession, device_id: str, temperature: Optional[float], humidity: Optional[float]) -> SensorReading:
    return await sensor_readings.insert(db, {"device_id": device_id, "temperature": temperature, "humidity": humidity})

async def latest(db: AsyncSession, device_id: str) -> Union[SensorReading, Dict[str, Any]]:
    row = await sensor_readings.find_one(db, {"device_id": device_id}, sort_key="timestamp")
    if row is None:
        return placeholder(device_id)
    return row

async def history(db: AsyncSession, device_id: str, limit: Union[str, int, None] = None) -> List[SensorReading]:
    return await sensor_readings.find_many(db, {"device_id": device_id}, "timestamp", limit=parse_limit(limit))

async def delete_for_device(db: AsyncSession, device_id: str) -> int:
    return await sensor_readings.delete_many(db, {"device_id": device_id})

async def delete_all(db: AsyncSession) -> int:
    return await sensor_readings.delete_many(db)

async def dataset(db: AsyncSession) -> List[SensorReading]:
    # unbounded, admin export only
    return await sensor_readings.find_many(db, None, "timestamp")

async def purge_older_than(db: AsyncSession, cutoff: datetime) -> int:
    return await sensor_readings.delete_many(db, None, SensorReading.timestamp < cutoff)
