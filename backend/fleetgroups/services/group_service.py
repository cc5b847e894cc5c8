# fleetgroups/services/group_service.py
import logging
from typing import Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from fleetgroups.core.errors import DeviceGroupError, ErrorKind, MembershipUpdateError, error_kind
from fleetgroups.models import Application, Device, DeviceGroup
from fleetgroups.services.membership import (
    Decoder,
    DeviceRef,
    MembershipDiff,
    compute_diff,
    get_member_ids,
    resolve_group_scope,
    validate_device_list,
)

logger = logging.getLogger(__name__)

# Centinela para distinguir "no enviado" de None en actualizaciones parciales
UNSET = object()


async def create_device_group(
    db: AsyncSession,
    name: str,
    *,
    application: Optional[Application] = None,
    description: Optional[str] = None,
) -> DeviceGroup:
    """
    Crea un grupo de dispositivos.
    El nombre es obligatorio; sin aplicación el grupo queda sin asociar.
    """
    if not name or not name.strip():
        raise DeviceGroupError("invalid_request", "DeviceGroup name is required", 400)

    db_group = DeviceGroup(
        name=name,
        description=description,
        application_id=application.id if application is not None else None,
    )
    db.add(db_group)
    await db.commit()
    await db.refresh(db_group)
    logger.info(f"Grupo creado: {db_group.name} (id={db_group.id})")
    return db_group


async def update_device_group(db: AsyncSession, device_group: DeviceGroup, *, name=UNSET, description=UNSET) -> DeviceGroup:
    """
    Actualiza nombre y/o descripción. Solo cambian los campos indicados
    explícitamente; si nada cambia no hay escritura.
    """
    if device_group is None:
        raise DeviceGroupError("invalid_request", "DeviceGroup is required", 400)

    changed = False
    if name is not UNSET:
        if not name or not name.strip():
            raise DeviceGroupError("invalid_request", "DeviceGroup name is required", 400)
        device_group.name = name
        changed = True
    if description is not UNSET:
        device_group.description = description
        changed = True
    if changed:
        await db.commit()
        await db.refresh(device_group)
    return device_group


async def get_device_group(db: AsyncSession, group_id: int) -> Optional[DeviceGroup]:
    """
    Obtiene un grupo por su ID con sus dispositivos cargados.
    """
    result = await db.execute(
        select(DeviceGroup)
        .options(selectinload(DeviceGroup.devices))
        .where(DeviceGroup.id == group_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def get_device_groups(
    db: AsyncSession, skip: int = 0, limit: int = 100, application_id: Optional[int] = None
) -> List[DeviceGroup]:
    query = select(DeviceGroup).options(selectinload(DeviceGroup.devices))
    if application_id is not None:
        query = query.where(DeviceGroup.application_id == application_id)
    result = await db.execute(
        query.order_by(DeviceGroup.name).offset(skip).limit(limit).execution_options(populate_existing=True)
    )
    return result.scalars().all()


async def update_device_group_membership(
    db: AsyncSession,
    device_group: DeviceGroup,
    *,
    add_devices: Optional[Iterable[DeviceRef]] = None,
    remove_devices: Optional[Iterable[DeviceRef]] = None,
    set_devices: Optional[Iterable[DeviceRef]] = None,
    decoder: Optional[Decoder] = None,
) -> MembershipDiff:
    """
    Reconcilia la membresía del grupo con la petición y la aplica de forma atómica.

    * set_devices reemplaza la lista completa; add/remove se ignoran
    * add_devices añade los que no son miembros
    * remove_devices quita los que sí son miembros
    * si un dispositivo está en add y remove, termina fuera del grupo

    Los errores de validación se relanzan tal cual; cualquier otro fallo se
    envuelve en MembershipUpdateError. En ambos casos se hace rollback.
    """
    if set_devices is None and add_devices is None and remove_devices is None:
        return MembershipDiff()  # nada que hacer
    if device_group is None or not isinstance(device_group, DeviceGroup):
        raise DeviceGroupError("invalid_request", "DeviceGroup is required", 400)

    group_id = device_group.id
    owns_transaction = not db.in_transaction()
    try:
        current_member_ids = await get_member_ids(db, device_group)
        diff = compute_diff(
            current_member_ids,
            add=add_devices,
            remove=remove_devices,
            set_=set_devices,
            decoder=decoder,
        )
        if not diff.is_empty:
            await resolve_group_scope(db, device_group)
    except DeviceGroupError:
        await _end_read_transaction(db, owns_transaction)
        raise
    if diff.is_empty:
        logger.info(f"Grupo {group_id}: la membresía ya coincide, sin cambios")
        await _end_read_transaction(db, owns_transaction)
        return diff

    logger.info(f"Grupo {group_id}: añadir {diff.to_add}, quitar {diff.to_remove}")

    try:
        if diff.to_add:
            await assign_devices_to_group(db, device_group, diff.to_add, decoder=decoder)
        if diff.to_remove:
            await remove_devices_from_group(db, device_group, diff.to_remove, decoder=decoder)
        await db.commit()
    except Exception as err:
        await db.rollback()
        logger.warning(f"Grupo {group_id}: cambios de membresía revertidos ({err})")
        if error_kind(err) is ErrorKind.VALIDATION:
            raise
        raise MembershipUpdateError(f"Failed to update device group membership: {err}") from err

    return diff


async def assign_devices_to_group(
    db: AsyncSession,
    device_group: DeviceGroup,
    devices: Iterable[DeviceRef],
    *,
    decoder: Optional[Decoder] = None,
) -> List[int]:
    """
    Asigna uno o más dispositivos al grupo dentro de la unidad de trabajo `db`.
    No hace commit: lo decide quien abrió la transacción.
    """
    device_ids = await validate_device_list(db, device_group, devices, None, decoder=decoder)
    if device_ids.add_list:
        await db.execute(
            update(Device)
            .where(Device.id.in_(device_ids.add_list))
            .values(device_group_id=device_group.id)
        )
    return device_ids.add_list


async def remove_devices_from_group(
    db: AsyncSession,
    device_group: DeviceGroup,
    devices: Iterable[DeviceRef],
    *,
    decoder: Optional[Decoder] = None,
) -> List[int]:
    """
    Quita uno o más dispositivos del grupo dentro de la unidad de trabajo `db`.
    Solo se tocan filas cuyo device_group_id sigue siendo este grupo.
    """
    device_ids = await validate_device_list(db, device_group, None, devices, decoder=decoder)
    if device_ids.remove_list:
        await db.execute(
            update(Device)
            .where(Device.id.in_(device_ids.remove_list), Device.device_group_id == device_group.id)
            .values(device_group_id=None)
        )
    return device_ids.remove_list


async def _end_read_transaction(db: AsyncSession, owns_transaction: bool) -> None:
    # Solo se cierra la transacción de lectura si la abrió esta función
    if owns_transaction and db.in_transaction():
        await db.commit()
