"""Workflow API Routes - Read-only workflow definitions"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from ..deps import get_current_user_dep, get_correlation_id_dep, get_workflow_service
from ...domain.models import ActorContext, WorkflowDetail
from ...domain.errors import DomainError
from ...services.workflow_service import WorkflowService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/{workflow_id}", response_model=WorkflowDetail)
def get_workflow(
    workflow_id: str,
    version: Optional[int] = Query(None, ge=1),
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: WorkflowService = Depends(get_workflow_service)
):
    """
    Get workflow with one published version

    Defaults to the current version; pass ?version= for an older one, e.g.
    the version a running task is pinned to.
    """
    try:
        return service.get_workflow_detail(workflow_id, version=version)

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())
