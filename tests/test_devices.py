from datetime import timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from devicehub import devices
from devicehub.db import Base
from devicehub.models import DeviceState
from devicehub.repository import StorageError


def _naive(dt):
    return dt.astimezone(timezone.utc).replace(tzinfo=None) if dt.tzinfo else dt


@pytest.mark.asyncio
async def test_unknown_device_has_no_state(db):
    assert await devices.get_state(db, "never-seen") is None


@pytest.mark.asyncio
async def test_set_then_get_returns_led(db):
    written = await devices.set_state(db, "d1", True)
    assert written.device_id == "d1"
    assert written.led is True

    state = await devices.get_state(db, "d1")
    assert state.led is True
    assert state.updated_at is not None


@pytest.mark.asyncio
async def test_second_write_overwrites_without_duplicating(db):
    first = await devices.set_state(db, "d1", True)
    first_ts = _naive(first.updated_at)
    second = await devices.set_state(db, "d1", False)

    assert second.led is False
    assert _naive(second.updated_at) >= first_ts

    count = await db.scalar(select(func.count()).select_from(DeviceState).where(DeviceState.device_id == "d1"))
    assert count == 1


@pytest.mark.asyncio
async def test_led_defaults_to_false_and_omitted_led_is_kept(db):
    created = await devices.set_state(db, "d2", None)
    assert created.led is False

    await devices.set_state(db, "d2", True)
    touched = await devices.set_state(db, "d2", None)
    assert touched.led is True


@pytest.mark.asyncio
async def test_states_are_per_device(db):
    await devices.set_state(db, "a", True)
    await devices.set_state(db, "b", False)
    assert (await devices.get_state(db, "a")).led is True
    assert (await devices.get_state(db, "b")).led is False


@pytest.mark.asyncio
async def test_missing_device_id_is_a_storage_error(db):
    with pytest.raises(StorageError):
        await devices.set_state(db, None, True)


@pytest.mark.asyncio
async def test_storage_failure_surfaces_as_storage_error(engine, db):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    with pytest.raises(StorageError):
        await devices.get_state(db, "d1")


@pytest.mark.asyncio
async def test_refused_connection_surfaces_as_storage_error():
    pytest.importorskip("asyncpg")
    eng = create_async_engine("postgresql+asyncpg://u:p@127.0.0.1:1/devicehub")
    try:
        async with sessionmaker(eng, expire_on_commit=False, class_=AsyncSession)() as db:
            with pytest.raises(StorageError):
                await devices.get_state(db, "d1")
    finally:
        await eng.dispose()


class _UnreachableSession:
    def __init__(self):
        self.rolled_back = False

    async def execute(self, stmt):
        raise ConnectionRefusedError(111, "Connect call failed")

    async def rollback(self):
        self.rolled_back = True


@pytest.mark.asyncio
async def test_os_level_connect_error_is_wrapped():
    db = _UnreachableSession()
    with pytest.raises(StorageError) as info:
        await devices.set_state(db, "d1", True)
    assert isinstance(info.value.__cause__, ConnectionRefusedError)
    assert db.rolled_back
