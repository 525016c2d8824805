"""Template admin routes."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database.base import get_db
from .schemas import TemplateCreateRequest, TemplateResponse, TemplateUpdateRequest
from .service import (
    create_template,
    deactivate_template,
    find_active_by_channel,
    find_all_by_code,
    find_by_code_and_locale,
    update_template,
)

router = APIRouter(prefix="/templates", tags=["templates"])


def _serialize(template) -> dict:
    return TemplateResponse.model_validate(template).model_dump(mode="json")


@router.get("")
def list_templates(
    channel: str | None = Query(None),
    code: str | None = Query(None),
    locale: str | None = Query(None),
    db: Session = Depends(get_db),
):
    if channel:
        templates = find_active_by_channel(db, channel.strip().lower())
    elif code and locale:
        template = find_by_code_and_locale(db, code, locale)
        templates = [template] if template else []
    elif code:
        templates = find_all_by_code(db, code)
    else:
        return JSONResponse({"error": "Provide a channel or code filter"}, status_code=400)
    return JSONResponse({"templates": [_serialize(t) for t in templates]})


@router.post("")
def add_template(body: TemplateCreateRequest, db: Session = Depends(get_db)):
    try:
        template = create_template(
            db,
            channel=body.channel,
            template_code=body.template_code,
            body_template=body.body_template,
            locale=body.locale,
            subject_template=body.subject_template,
            active=body.active,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        return JSONResponse(
            {"error": f"Template already exists: {body.channel}/{body.template_code}/{body.locale}"},
            status_code=409,
        )
    return JSONResponse({"ok": True, "template": _serialize(template)}, status_code=201)


@router.put("/{template_id}")
def edit_template(template_id: int, body: TemplateUpdateRequest, db: Session = Depends(get_db)):
    template = update_template(
        db,
        template_id,
        subject_template=body.subject_template,
        body_template=body.body_template,
        active=body.active,
    )
    if not template:
        return JSONResponse({"error": "Template not found"}, status_code=404)
    db.commit()
    return JSONResponse({"ok": True, "template": _serialize(template)})


@router.delete("/{template_id}")
def remove_template(template_id: int, db: Session = Depends(get_db)):
    if not deactivate_template(db, template_id):
        return JSONResponse({"error": "Template not found"}, status_code=404)
    db.commit()
    return JSONResponse({"ok": True})
