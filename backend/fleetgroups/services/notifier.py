# fleetgroups/services/notifier.py
"""
Notificación best-effort a los dispositivos de un grupo tras un cambio.

Se ejecuta fuera de la transacción de membresía: sus fallos se registran en el
log y nunca revierten ni propagan errores al llamador.
"""
import logging
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from fleetgroups.core.config import settings
from fleetgroups.core.identifiers import encode_id
from fleetgroups.models import Application, Device, DeviceGroup, PipelineStageDeviceGroup, ProjectSnapshot
from fleetgroups.services.comms import get_command_dispatcher

logger = logging.getLogger(__name__)

_NOT_CONFIGURED = object()


async def send_update_command(
    db: AsyncSession,
    device_group: DeviceGroup,
    *,
    comms=_NOT_CONFIGURED,
    license_active: Optional[bool] = None,
) -> int:
    """
    Envía el ID de la aplicación, el snapshot objetivo y el hash de ajustes a los
    dispositivos del grupo para que decidan si deben actualizarse.

    Solo reciben el comando los dispositivos cuyo target_snapshot_id coincide con
    el de la etapa de pipeline del grupo. Devuelve cuántos comandos se enviaron.
    """
    if comms is _NOT_CONFIGURED:
        comms = get_command_dispatcher()
    if comms is None:
        return 0
    if license_active is None:
        license_active = settings.LICENSE_ACTIVE

    application = None
    if device_group.application_id is not None:
        application = await db.get(Application, device_group.application_id)
    if application is None:
        logger.warning(f"Grupo {device_group.id} sin aplicación, no se envía 'update'")
        return 0

    result = await db.execute(
        select(PipelineStageDeviceGroup).where(PipelineStageDeviceGroup.device_group_id == device_group.id)
    )
    stage = result.scalars().first()
    if stage is None or stage.target_snapshot_id is None:
        logger.info(f"Grupo {device_group.id} sin snapshot objetivo, no se envía 'update'")
        return 0

    target_snapshot = await db.get(ProjectSnapshot, stage.target_snapshot_id)
    payload_template = {
        "ownerType": "application",
        "application": encode_id("Application", application.id),
        "snapshot": encode_id("ProjectSnapshot", target_snapshot.id if target_snapshot else stage.target_snapshot_id),
        "settings": None,
        "mode": None,
        "licensed": bool(license_active),
    }
    team_hashid = encode_id("Team", application.team_id)

    result = await db.execute(
        select(Device).where(Device.device_group_id == device_group.id).order_by(Device.id)
    )
    sent = 0
    for device in result.scalars().all():
        # Si el dispositivo no tiene el mismo snapshot objetivo que el grupo, se omite
        if device.target_snapshot_id != stage.target_snapshot_id:
            continue
        payload = dict(payload_template)
        payload["settings"] = device.settings_hash or None
        payload["mode"] = device.mode
        try:
            if await comms.send_command(team_hashid, encode_id("Device", device.id), "update", payload):
                sent += 1
        except Exception:
            logger.exception(f"❌ Fallo enviando 'update' al dispositivo {device.id}")
    logger.info(f"Grupo {device_group.id}: 'update' enviado a {sent} dispositivo(s)")
    return sent


async def notify_device_group(
    group_id: int,
    session_factory: Callable[[], AsyncSession],
    comms=_NOT_CONFIGURED,
) -> int:
    """
    Punto de entrada para tareas en segundo plano: abre su propia sesión y
    nunca lanza excepciones.
    """
    try:
        async with session_factory() as db:
            device_group = await db.get(DeviceGroup, group_id)
            if device_group is None:
                logger.warning(f"Grupo {group_id} no encontrado, no se envía 'update'")
                return 0
            return await send_update_command(db, device_group, comms=comms)
    except Exception:
        logger.exception(f"❌ Error notificando al grupo {group_id}")
        return 0
