"""
Fixtures compartidos: base de datos SQLite en memoria (aiosqlite) con un
escenario de equipos, aplicaciones, grupos y dispositivos.
"""
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.future import select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fleetgroups.core.database import Base
from fleetgroups.models import (
    Application,
    Device,
    DeviceGroup,
    PipelineStageDeviceGroup,
    ProjectSnapshot,
    Team,
)

TEAM_T = 1
TEAM_OTHER = 2
APP_X = 1
APP_Y = 2
GROUP_G = 1
GROUP_OTHER = 2
GROUP_DETACHED = 3
SNAPSHOT_S1 = 1
SNAPSHOT_S2 = 2


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as db:
        db.add_all([
            Team(id=TEAM_T, name="Team T"),
            Team(id=TEAM_OTHER, name="Other team"),
            ProjectSnapshot(id=SNAPSHOT_S1, name="snapshot-1"),
            ProjectSnapshot(id=SNAPSHOT_S2, name="snapshot-2"),
        ])
        await db.flush()
        db.add_all([
            Application(id=APP_X, name="Application X", team_id=TEAM_T),
            Application(id=APP_Y, name="Application Y", team_id=TEAM_OTHER),
        ])
        await db.flush()
        db.add_all([
            DeviceGroup(id=GROUP_G, name="G", application_id=APP_X),
            DeviceGroup(id=GROUP_OTHER, name="Other", application_id=APP_X),
            DeviceGroup(id=GROUP_DETACHED, name="Detached"),
        ])
        await db.flush()
        db.add_all([
            # miembros de G
            Device(id=1, name="d1", device_group_id=GROUP_G, application_id=APP_X, team_id=TEAM_T,
                   target_snapshot_id=SNAPSHOT_S1, settings_hash="abc123", mode="autonomous"),
            Device(id=2, name="d2", device_group_id=GROUP_G, application_id=APP_X, team_id=TEAM_T,
                   target_snapshot_id=SNAPSHOT_S1, mode="developer"),
            Device(id=3, name="d3", device_group_id=GROUP_G, application_id=APP_X, team_id=TEAM_T,
                   target_snapshot_id=SNAPSHOT_S2, mode="autonomous"),
            # sin asignar, misma aplicación y equipo
            Device(id=4, name="d4", application_id=APP_X, team_id=TEAM_T),
            # otra aplicación y otro equipo
            Device(id=5, name="d5", application_id=APP_Y, team_id=TEAM_OTHER),
            # asignado a otro grupo de la misma aplicación
            Device(id=6, name="d6", device_group_id=GROUP_OTHER, application_id=APP_X, team_id=TEAM_T),
            Device(id=7, name="d7", application_id=APP_X, team_id=TEAM_T),
        ])
        db.add(PipelineStageDeviceGroup(pipeline_stage_id=10, device_group_id=GROUP_G, target_snapshot_id=SNAPSHOT_S1))
        await db.commit()
        yield db


@pytest.fixture
def members(session):
    """Devuelve los IDs de los miembros actuales de un grupo, leídos de la BD."""
    async def _members(group_id):
        result = await session.execute(
            select(Device.id).where(Device.device_group_id == group_id).order_by(Device.id)
        )
        return list(result.scalars().all())
    return _members
