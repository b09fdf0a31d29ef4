from datetime import datetime
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire; input accepts both."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

class DeviceStateIn(CamelModel):
    # optional so a missing field reaches storage instead of failing validation
    device_id: str | None = None
    led: bool | None = None

class DeviceStateOut(CamelModel):
    device_id: str
    led: bool
    updated_at: datetime

class SensorDataIn(CamelModel):
    device_id: str | None = None
    temperature: float | None = None
    humidity: float | None = None

class SensorReadingOut(CamelModel):
    device_id: str | None
    temperature: float | None = None
    humidity: float | None = None
    timestamp: datetime | None = None

class MessageOut(CamelModel):
    message: str

class DeleteOut(CamelModel):
    message: str
    deleted_count: int

class ResetLocalOut(CamelModel):
    action: str
    message: str

class ErrorOut(BaseModel):
    error: str
