"""
Site Settings Endpoints

GET /api/settings/site is public (what a theme needs to render);
everything else requires the settings permission.
"""

from typing import Dict, List

from fastapi import APIRouter, Depends, Query

from ....core.auth.permissions import Permission
from ....core.auth.session import AuthUser
from ....core.models import SettingsModel
from ...shared.dependencies import get_settings_model
from ...shared.exceptions import NotFoundError
from ...shared.middleware.auth import require_permission
from ...shared.responses import SuccessResponse
from ..schemas import SettingBackupEntry, SettingWrite

router = APIRouter(prefix="/api/settings", tags=["settings"])

manager = require_permission(Permission.SETTINGS_MANAGE)


@router.get("/site")
async def website_config(settings: SettingsModel = Depends(get_settings_model)):
    return SuccessResponse.create(await settings.get_website_config())


@router.get("")
async def list_settings(
    typed: bool = Query(False, description="Return {key: parsed value} instead of stored rows"),
    user: AuthUser = Depends(manager),
    settings: SettingsModel = Depends(get_settings_model),
):
    if typed:
        return SuccessResponse.create(await settings.get_all_as_dict())
    return SuccessResponse.create([setting.to_dict() for setting in await settings.get_all()])


@router.get("/backup")
async def backup_settings(
    user: AuthUser = Depends(manager),
    settings: SettingsModel = Depends(get_settings_model),
):
    return SuccessResponse.create(await settings.backup())


@router.post("/restore")
async def restore_settings(
    entries: List[SettingBackupEntry],
    user: AuthUser = Depends(manager),
    settings: SettingsModel = Depends(get_settings_model),
):
    """Restore entries produced by GET /backup."""
    count = await settings.restore([entry.model_dump() for entry in entries])
    return SuccessResponse.create({"restored": count}, message=f"Restored {count} setting(s)")


@router.put("")
async def update_settings(
    body: Dict[str, SettingWrite],
    user: AuthUser = Depends(manager),
    settings: SettingsModel = Depends(get_settings_model),
):
    """Set several settings at once: {key: {value, type, description}}."""
    await settings.set_many({key: write.model_dump() for key, write in body.items()})
    return SuccessResponse.create(await settings.get_many(body.keys()), message="Settings updated")


@router.get("/{key}")
async def get_setting(
    key: str,
    user: AuthUser = Depends(manager),
    settings: SettingsModel = Depends(get_settings_model),
):
    setting = await settings.get(key)
    if setting is None:
        raise NotFoundError("Setting", key)
    return SuccessResponse.create(setting.to_dict())


@router.put("/{key}")
async def put_setting(
    key: str,
    body: SettingWrite,
    user: AuthUser = Depends(manager),
    settings: SettingsModel = Depends(get_settings_model),
):
    await settings.set(key, body.value, body.type, body.description)
    return SuccessResponse.create((await settings.get(key)).to_dict(), message="Setting saved")


@router.delete("/{key}")
async def delete_setting(
    key: str,
    user: AuthUser = Depends(manager),
    settings: SettingsModel = Depends(get_settings_model),
):
    if not await settings.delete(key):
        raise NotFoundError("Setting", key)
    return SuccessResponse.create({"key": key}, message="Setting deleted")
