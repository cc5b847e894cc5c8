# fleetgroups/services/membership.py
"""
Cálculo y validación de cambios de membresía de un grupo de dispositivos.

- compute_diff: función pura que decide qué dispositivos añadir y quitar.
- validate_device_list: comprueba con una consulta COUNT por dirección que
  todos los dispositivos son elegibles para el grupo.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Protocol, Tuple, Union

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from fleetgroups.core.errors import DeviceGroupError, MembershipValidationError
from fleetgroups.core.identifiers import decode_device_id
from fleetgroups.models import Application, Device, DeviceGroup

class HasId(Protocol):
    id: int


# Un dispositivo se puede referenciar por ID numérico, por hashid o por un
# objeto/dict con atributo `id`
DeviceRef = Union[int, str, HasId, Mapping[str, Any]]
Decoder = Callable[[str], Optional[int]]


@dataclass
class MembershipDiff:
    to_add: List[int] = field(default_factory=list)
    to_remove: List[int] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


@dataclass
class DeviceIdLists:
    add_list: Optional[List[int]] = None
    remove_list: Optional[List[int]] = None


def resolve_device_id(device: DeviceRef, decoder: Optional[Decoder] = None) -> int:
    decoder = decoder or decode_device_id
    if isinstance(device, bool):
        raise DeviceGroupError("invalid_device_reference", f"Invalid device reference: {device!r}", 400)
    if isinstance(device, int):
        return device
    if isinstance(device, str):
        device_id = decoder(device)
        if device_id is None:
            raise MembershipValidationError("invalid_input", f"Invalid device id: {device}", 400)
        return device_id
    if isinstance(device, Mapping):
        device_id = device.get("id")
    else:
        device_id = getattr(device, "id", None)
    if isinstance(device_id, int) and not isinstance(device_id, bool):
        return device_id
    raise DeviceGroupError("invalid_device_reference", f"Invalid device reference: {device!r}", 400)


def device_list_to_ids(devices: Optional[Iterable[DeviceRef]], decoder: Optional[Decoder] = None) -> Optional[List[int]]:
    """
    Convierte una lista de dispositivos (int | hashid | objeto) a IDs numéricos,
    sin duplicados y en orden de primera aparición. None se mantiene como None.
    """
    if devices is None:
        return None
    ids = []
    seen = set()
    for device in devices:
        device_id = resolve_device_id(device, decoder)
        if device_id not in seen:
            seen.add(device_id)
            ids.append(device_id)
    return ids


def compute_diff(
    current_members: Iterable[DeviceRef],
    *,
    add: Optional[Iterable[DeviceRef]] = None,
    remove: Optional[Iterable[DeviceRef]] = None,
    set_: Optional[Iterable[DeviceRef]] = None,
    decoder: Optional[Decoder] = None,
) -> MembershipDiff:
    """
    Calcula los dispositivos a añadir y a quitar a partir de los miembros actuales.

    Si `set_` está presente (aunque sea vacío) es la lista autoritativa y se
    ignoran `add` y `remove`. En otro caso solo se quitan los miembros actuales
    incluidos en `remove` y solo se añaden los de `add` que no son miembros.

    Un dispositivo presente a la vez en `add` y `remove` termina fuera del grupo:
    se añade y después se quita dentro de la misma transacción.
    """
    current_ids = device_list_to_ids(current_members, decoder) or []
    set_ids = device_list_to_ids(set_, decoder)
    add_ids = device_list_to_ids(add, decoder)
    remove_ids = device_list_to_ids(remove, decoder)

    current = set(current_ids)
    if set_ids is not None:
        wanted = set(set_ids)
        return MembershipDiff(
            to_add=[d for d in set_ids if d not in current],
            to_remove=[d for d in current_ids if d not in wanted],
        )

    to_add = [d for d in (add_ids or []) if d not in current]
    removing = set(remove_ids or [])
    to_remove = [d for d in current_ids if d in removing]
    # el quitado ocurre después del añadido
    to_remove.extend(d for d in to_add if d in removing)
    return MembershipDiff(to_add=to_add, to_remove=to_remove)


async def resolve_group_scope(db: AsyncSession, device_group: DeviceGroup) -> Tuple[int, int]:
    """
    Devuelve (application_id, team_id) del grupo. Falla si el grupo no pertenece
    a una aplicación que a su vez pertenece a un equipo.
    """
    if device_group is None or not isinstance(device_group, DeviceGroup):
        raise DeviceGroupError("invalid_request", "DeviceGroup is required", 400)

    application = None
    if device_group.application_id is not None:
        application = await db.get(Application, device_group.application_id)
    if application is None or application.team_id is None:
        raise DeviceGroupError(
            "invalid_request",
            "DeviceGroup must belong to an Application that belongs to a Team",
            400,
        )
    return application.id, application.team_id


async def get_member_ids(db: AsyncSession, device_group: DeviceGroup) -> List[int]:
    result = await db.execute(
        select(Device.id).where(Device.device_group_id == device_group.id).order_by(Device.id)
    )
    return list(result.scalars().all())


async def validate_device_list(
    db: AsyncSession,
    device_group: DeviceGroup,
    add_list: Optional[Iterable[DeviceRef]] = None,
    remove_list: Optional[Iterable[DeviceRef]] = None,
    *,
    decoder: Optional[Decoder] = None,
) -> DeviceIdLists:
    """
    Verifica que los dispositivos son adecuados para el grupo:

    * Para añadir: device_group_id es NULL o ya es este grupo
    * Para quitar: device_group_id es este grupo
    * En ambos casos: misma aplicación y mismo equipo que el grupo

    Se hace con un COUNT por dirección dentro de la transacción del llamador.
    """
    application_id, team_id = await resolve_group_scope(db, device_group)
    device_ids = DeviceIdLists(
        add_list=device_list_to_ids(add_list, decoder),
        remove_list=device_list_to_ids(remove_list, decoder),
    )
    group_id = device_group.id

    if device_ids.add_list:
        ok_count = await _count_devices(
            db,
            Device.id.in_(device_ids.add_list),
            or_(Device.device_group_id.is_(None), Device.device_group_id == group_id),
            Device.application_id == application_id,
            Device.team_id == team_id,
        )
        if ok_count != len(device_ids.add_list):
            raise MembershipValidationError("invalid_input", "One or more devices cannot be added to the group", 400)

    if device_ids.remove_list:
        ok_count = await _count_devices(
            db,
            Device.id.in_(device_ids.remove_list),
            Device.device_group_id == group_id,
            Device.application_id == application_id,
            Device.team_id == team_id,
        )
        if ok_count != len(device_ids.remove_list):
            raise MembershipValidationError("invalid_input", "One or more devices cannot be removed from the group", 400)

    return device_ids


async def _count_devices(db: AsyncSession, *criteria) -> int:
    result = await db.execute(select(func.count()).select_from(Device).where(*criteria))
    return result.scalar_one()
