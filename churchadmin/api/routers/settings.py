"""Site settings: a fixed set of keys stored as key/value rows."""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from churchadmin.api.deps import get_db, get_current_user
from churchadmin.core.config import get_settings
from churchadmin.core.errors import ValidationFailed
from churchadmin.core.rbac import UserContext, require_permission
from churchadmin.core.validation import sanitize
from churchadmin.db.base import utcnow
from churchadmin.db.models import Setting
from churchadmin.db.session import commit_or_conflict

router = APIRouter(prefix="/settings", tags=["settings"])

DEFAULT_SETTINGS = {
    "church_name": "",
    "tagline": "",
    "contact_email": "",
    "address": "",
    "service_times": "",
    "logo_url": "",
    "facebook_url": "",
    "youtube_url": "",
    "hero_heading_main": "",
    "hero_heading_accent": "",
    "hero_bg_url": "",
    "hero_arc_image_url": "",
}

PUBLIC_SETTING_KEYS = (
    "church_name",
    "tagline",
    "logo_url",
    "hero_bg_url",
    "hero_arc_image_url",
    "hero_heading_main",
    "hero_heading_accent",
)


def load_settings(db: Session) -> tuple[dict, dict]:
    """Stored values layered over the defaults, plus who changed each key and when."""
    settings = dict(DEFAULT_SETTINGS, church_name=get_settings().church_name)
    meta = {}
    for row in db.query(Setting).all():
        settings[row.key] = row.value or ""
        meta[row.key] = {
            "updated_at": row.updated_at.isoformat() if row.updated_at else "",
            "updated_by": row.updated_by or "",
        }
    return settings, meta


@router.get("/public")
def public_settings(db: Session = Depends(get_db)):
    settings, _ = load_settings(db)
    return {"settings": {key: settings.get(key) or "" for key in PUBLIC_SETTING_KEYS}}


@router.get("")
@require_permission("settings:read")
async def get_all_settings(
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    settings, meta = load_settings(db)
    return {"settings": settings, "meta": meta}


@router.put("")
@require_permission("settings:update")
async def update_settings(
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    """Upsert the known keys in the body. Unknown keys are ignored."""
    updates = {}
    for key, value in data.items():
        if key not in DEFAULT_SETTINGS:
            continue
        updates[key] = sanitize("" if value is None else str(value))
    if not updates:
        raise ValidationFailed({"settings": "No updatable settings provided"})

    timestamp = utcnow()
    for key, value in updates.items():
        row = db.get(Setting, key)
        if row is None:
            row = Setting(key=key)
            db.add(row)
        row.value = value
        row.updated_by = current_user.email or "system"
        row.updated_at = timestamp
    commit_or_conflict(db)

    settings, meta = load_settings(db)
    return {"message": "Settings updated", "settings": settings, "meta": meta}
