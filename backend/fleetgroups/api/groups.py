from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from fleetgroups.core.errors import DeviceGroupError
from fleetgroups.dependencies import get_db, get_session_factory
from fleetgroups.models import Application
from fleetgroups.schemas.group import Group, GroupCreate, GroupUpdate, GroupMembershipUpdate, GroupMembershipResult
from fleetgroups.services import group_service, notifier

router = APIRouter()


def _http_error(err: DeviceGroupError) -> HTTPException:
    return HTTPException(status_code=err.status_code, detail=err.to_dict())


async def _get_group_or_404(db: AsyncSession, group_id: int):
    db_group = await group_service.get_device_group(db, group_id)
    if db_group is None:
        raise HTTPException(status_code=404, detail="Group not found")
    return db_group


@router.post("/", response_model=Group, status_code=201)
async def create_group_endpoint(group: GroupCreate, db: AsyncSession = Depends(get_db)):
    """Crea un nuevo grupo."""
    application = None
    if group.application_id is not None:
        application = await db.get(Application, group.application_id)
        if application is None:
            raise HTTPException(status_code=404, detail="Application not found")
    try:
        db_group = await group_service.create_device_group(
            db, group.name, application=application, description=group.description
        )
    except DeviceGroupError as err:
        raise _http_error(err) from err
    # Se vuelve a leer con los dispositivos cargados para la respuesta
    return await _get_group_or_404(db, db_group.id)


@router.get("/", response_model=List[Group])
async def read_groups(
    skip: int = 0,
    limit: int = 100,
    application_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
):
    """Obtiene una lista de grupos."""
    return await group_service.get_device_groups(db, skip=skip, limit=limit, application_id=application_id)


@router.get("/{group_id}", response_model=Group)
async def read_group(group_id: int, db: AsyncSession = Depends(get_db)):
    """Obtiene un grupo por ID."""
    return await _get_group_or_404(db, group_id)


@router.put("/{group_id}", response_model=Group)
async def update_group_endpoint(group_id: int, group: GroupUpdate, db: AsyncSession = Depends(get_db)):
    """Actualiza nombre y/o descripción de un grupo."""
    db_group = await _get_group_or_404(db, group_id)
    try:
        await group_service.update_device_group(db, db_group, **group.model_dump(exclude_unset=True))
    except DeviceGroupError as err:
        raise _http_error(err) from err
    return await _get_group_or_404(db, group_id)


@router.patch("/{group_id}/devices", response_model=GroupMembershipResult)
async def update_group_membership_endpoint(
    group_id: int,
    membership: GroupMembershipUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory=Depends(get_session_factory),
):
    """
    Añade, quita o reemplaza los dispositivos de un grupo.
    Si hubo cambios, se envía el comando 'update' en segundo plano.
    """
    db_group = await _get_group_or_404(db, group_id)
    try:
        diff = await group_service.update_device_group_membership(
            db,
            db_group,
            add_devices=membership.add_devices,
            remove_devices=membership.remove_devices,
            set_devices=membership.set_devices,
        )
    except DeviceGroupError as err:
        raise _http_error(err) from err

    if not diff.is_empty:
        background_tasks.add_task(notifier.notify_device_group, group_id, session_factory)
    return GroupMembershipResult(added=diff.to_add, removed=diff.to_remove)


@router.post("/{group_id}/update-command")
async def send_update_command_endpoint(group_id: int, db: AsyncSession = Depends(get_db)):
    """Envía el comando 'update' a los dispositivos del grupo."""
    db_group = await _get_group_or_404(db, group_id)
    sent = await notifier.send_update_command(db, db_group)
    return {"sent": sent}
