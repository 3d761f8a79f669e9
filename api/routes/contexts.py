from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from atomizer.core import AtomizerPipeline, CycleDetectedError

from api.dependencies import get_pipeline

router = APIRouter(prefix="/contexts", tags=["contexts"])


class DecomposeRequest(BaseModel):
    text: str
    owner: Optional[str] = None


@router.post("")
def decompose(request: DecomposeRequest, pipeline: AtomizerPipeline = Depends(get_pipeline)):
    document = pipeline.decompose_and_persist(request.text, owner=request.owner)
    return {
        "root_ids": document.root_ids,
        "atoms": len(document.atoms),
        "contexts": len(document.contexts),
    }


@router.get("/{root_id}")
def get_context_tree(root_id: str, enrich: bool = True, pipeline: AtomizerPipeline = Depends(get_pipeline)):
    try:
        tree = pipeline.retrieve(root_id, enrich=enrich)
    except CycleDetectedError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if tree is None:
        raise HTTPException(status_code=404, detail=f"Context not found: {root_id}")
    return asdict(tree)
