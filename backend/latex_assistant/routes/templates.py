from fastapi import APIRouter, Depends, HTTPException

from ..deps import get_registry
from ..services.templates import TemplateRegistry, template_summary

router = APIRouter()


@router.get("/templates")
async def list_templates(registry: TemplateRegistry = Depends(get_registry)):
    return {"templates": [{"id": t.id, "name": t.name, "documentClass": t.document_class} for t in registry]}


@router.get("/templates/{template_id}")
async def get_template(template_id: str, registry: TemplateRegistry = Depends(get_registry)):
    template = registry.lookup(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="template not found")
    return template_summary(template)
