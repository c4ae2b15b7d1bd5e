from typing import Any, Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from ...form import FormController

router = APIRouter(prefix="/components", tags=["components"])


class ComponentResponse(BaseModel):
    type: str
    title: str
    icon: str
    description: str
    fields: list[dict]


class ValidateRequest(BaseModel):
    props: dict[str, Any] = {}
    collapsed: dict[str, list[int]] = {}


class NavigationEventResponse(BaseModel):
    action: str
    path: str
    offset: int = 0


class ValidateResponse(BaseModel):
    valid: bool
    errors: dict[str, list[str]]
    first_error: Optional[str] = None
    reached: bool = False
    expanded: list[str] = []
    events: list[NavigationEventResponse] = []


def to_response(component) -> ComponentResponse:
    return ComponentResponse(
        type=component.type,
        title=component.title,
        icon=component.icon,
        description=component.description,
        fields=[field.model_dump(mode="json") for field in component.fields],
    )


@router.get("", response_model=list[ComponentResponse])
def list_components(request: Request):
    return [to_response(c) for c in request.app.state.registry.list()]


@router.get("/{block_type}", response_model=ComponentResponse)
def get_component(block_type: str, request: Request):
    return to_response(request.app.state.registry.get(block_type))


@router.get("/{block_type}/form", response_class=HTMLResponse)
def render_form(block_type: str, request: Request, block_id: Optional[str] = None):
    component = request.app.state.registry.get(block_type)
    value = request.app.state.manager.get(block_id).props if block_id else None

    controller = FormController(
        component.form_schema(), value, editor=request.app.state.config.editor
    )
    try:
        return controller.render()
    finally:
        controller.destroy()


@router.post("/{block_type}/validate", response_model=ValidateResponse)
async def validate_props(block_type: str, payload: ValidateRequest, request: Request):
    component = request.app.state.registry.get(block_type)
    # markup is rendered in-process, nothing to wait for between expansions
    editor = request.app.state.config.editor.model_copy(update={"settle_delay_ms": 0})

    controller = FormController(component.form_schema(), payload.props, editor=editor)
    try:
        for path, indices in payload.collapsed.items():
            instance = controller.find_instance(path)
            if instance is None:
                continue
            for index in indices:
                instance.collapse_item(index)

        errors = controller.validate()
        if not errors:
            return ValidateResponse(valid=True, errors={})

        route, viewport = await controller.route_errors(errors)
        return ValidateResponse(
            valid=False,
            errors=errors,
            first_error=route.key if route else None,
            reached=route.reached if route else False,
            expanded=[f"{path}[{index}]" for path, index in (route.expanded if route else [])],
            events=[event.to_dict() for event in viewport.events],
        )
    finally:
        controller.destroy()
