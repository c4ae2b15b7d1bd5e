from typing import Any, Optional

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel, Field

from ...blocks import Block

router = APIRouter(prefix="/blocks", tags=["blocks"])


class BlockCreateRequest(BaseModel):
    type: str
    props: dict[str, Any] = {}
    settings: dict[str, Any] = {}
    style: dict[str, Any] = {}
    parent: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=0)
    visible: bool = True
    locked: bool = False


class BlockUpdateRequest(BaseModel):
    props: Optional[dict[str, Any]] = None
    settings: Optional[dict[str, Any]] = None
    style: Optional[dict[str, Any]] = None
    parent: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=0)
    visible: Optional[bool] = None
    locked: Optional[bool] = None


class ReorderRequest(BaseModel):
    ids: list[str]


@router.get("", response_model=list[Block])
def list_blocks(request: Request, type: Optional[str] = None, parent: Optional[str] = None):
    return request.app.state.manager.list(block_type=type, parent=parent)


@router.post("", response_model=Block, status_code=201)
def create_block(payload: BlockCreateRequest, request: Request):
    return request.app.state.manager.create(
        payload.type,
        payload.props,
        settings=payload.settings,
        style=payload.style,
        parent=payload.parent,
        order=payload.order,
        visible=payload.visible,
        locked=payload.locked,
    )


@router.post("/reorder", status_code=204)
def reorder_blocks(payload: ReorderRequest, request: Request):
    request.app.state.manager.reorder(payload.ids)
    return Response(status_code=204)


@router.get("/{block_id}", response_model=Block)
def get_block(block_id: str, request: Request):
    return request.app.state.manager.get(block_id)


@router.patch("/{block_id}", response_model=Block)
def update_block(block_id: str, payload: BlockUpdateRequest, request: Request):
    return request.app.state.manager.update(block_id, **payload.model_dump(exclude_none=True))


@router.delete("/{block_id}", status_code=204)
def delete_block(block_id: str, request: Request):
    request.app.state.manager.delete(block_id)
    return Response(status_code=204)


@router.post("/{block_id}/duplicate", response_model=Block, status_code=201)
def duplicate_block(block_id: str, request: Request):
    return request.app.state.manager.duplicate(block_id)
