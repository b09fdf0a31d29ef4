from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from . import config, devices, readings
from .db import SessionLocal, get_db, init_models
from .logging_config import configure_logging
from .repository import StorageError
from .retention import RetentionScheduler
from .schemas import (
    DeviceStateIn, DeviceStateOut, SensorDataIn, SensorReadingOut,
    MessageOut, DeleteOut, ResetLocalOut, ErrorOut
)

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="devicehub",
    description="LED state and temperature/humidity telemetry for IoT devices",
    version="1.0.0",
    responses={500: {"model": ErrorOut}},
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

retention = RetentionScheduler(SessionLocal)

def _failure(message: str) -> JSONResponse:
    logger.exception(message)
    return JSONResponse(status_code=500, content={"error": message})

@app.exception_handler(RequestValidationError)
async def on_invalid_request(request: Request, exc: RequestValidationError):
    # malformed input shares the one error shape with storage failures
    logger.warning("Invalid request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=500, content={"error": "Invalid request"})

@app.exception_handler(Exception)
async def on_unhandled(request: Request, exc: Exception):
    # the server middleware re-raises afterwards and the traceback is logged there
    return JSONResponse(status_code=500, content={"error": "Internal server error"})

@app.on_event("startup")
async def on_startup():
    await init_models()
    retention.start()

@app.on_event("shutdown")
async def on_shutdown():
    await retention.stop()

@app.get("/health")
async def health():
    return {"status": "ok"}

# --- device state (the ESP32 polls GET, the app POSTs) ---

@app.get("/device-state/{device_id}", response_model=Optional[DeviceStateOut])
async def get_device_state(device_id: str, db: AsyncSession = Depends(get_db)):
    try:
        return await devices.get_state(db, device_id)
    except StorageError:
        return _failure("Error fetching device state")

@app.post("/device-state", response_model=DeviceStateOut)
async def set_device_state(body: DeviceStateIn, db: AsyncSession = Depends(get_db)):
    try:
        return await devices.set_state(db, body.device_id, body.led)
    except StorageError:
        return _failure("Error updating device state")

# --- sensor data ---

@app.post("/sensor-data", response_model=MessageOut)
async def save_sensor_data(body: SensorDataIn, db: AsyncSession = Depends(get_db)):
    try:
        await readings.record(db, body.device_id, body.temperature, body.humidity)
    except StorageError:
        return _failure("Error saving sensor data")
    return MessageOut(message="Data saved")

@app.get("/sensor-data/{device_id}/latest", response_model=SensorReadingOut)
async def latest_sensor_data(device_id: str, db: AsyncSession = Depends(get_db)):
    """Newest reading, or nulls for every field but deviceId when there is none."""
    try:
        return await readings.latest(db, device_id)
    except StorageError:
        return _failure("Error fetching latest sensor data")

@app.get("/sensor-data/{device_id}", response_model=List[SensorReadingOut])
async def sensor_history(device_id: str, limit: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    try:
        return await readings.history(db, device_id, limit)
    except StorageError:
        return _failure("Error fetching sensor history")

@app.delete("/sensor-data/{device_id}", response_model=DeleteOut)
async def delete_sensor_data(device_id: str, db: AsyncSession = Depends(get_db)):
    try:
        deleted = await readings.delete_for_device(db, device_id)
    except StorageError:
        return _failure("Error deleting sensor data")
    return DeleteOut(message=f"Deleted readings for {device_id}", deleted_count=deleted)

# --- development / admin ---

@app.get("/dev/dataset", response_model=List[SensorReadingOut])
async def dev_dataset(db: AsyncSession = Depends(get_db)):
    try:
        return await readings.dataset(db)
    except StorageError:
        return _failure("Error exporting dataset")

@app.delete("/dev/reset-server", response_model=MessageOut)
async def dev_reset_server(db: AsyncSession = Depends(get_db)):
    try:
        deleted = await readings.delete_all(db)
    except StorageError:
        return _failure("Error resetting server data")
    logger.warning("Server reset: %d readings deleted", deleted)
    return MessageOut(message="All sensor data deleted")

@app.post("/dev/reset-local", response_model=ResetLocalOut)
async def dev_reset_local():
    """Acknowledgement only; clients clear their own cached data."""
    return ResetLocalOut(action="reset-local", message="Local data reset acknowledged")
