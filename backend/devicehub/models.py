from datetime import datetime, timezone
from sqlalchemy import Column, BigInteger, Integer, String, Boolean, Float, DateTime
from sqlalchemy.types import TypeDecorator
from .db import Base

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class UTCDateTime(TypeDecorator):
    """Stores UTC and always reads back an aware UTC datetime; sqlite drops the offset."""
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

# sqlite only autoincrements INTEGER primary keys
_PK = BigInteger().with_variant(Integer, "sqlite")

class DeviceState(Base):
    __tablename__ = "device_states"
    id = Column(_PK, primary_key=True)
    # one row per device is kept by the upsert path, not by a constraint
    device_id = Column(String, nullable=False, index=True)
    led = Column(Boolean, nullable=False, default=False)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow)

class SensorReading(Base):
    __tablename__ = "sensor_readings"
    id = Column(_PK, primary_key=True)
    device_id = Column(String, nullable=False, index=True)
    temperature = Column(Float)
    humidity = Column(Float)
    timestamp = Column(UTCDateTime, nullable=False, default=utcnow, index=True)
