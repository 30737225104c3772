from __future__ import annotations

from fastapi import APIRouter, Depends

from boba_pos.core.metrics import request_metrics
from boba_pos.deps import require_manager
from boba_pos.models.manager import Manager

router = APIRouter(prefix="/internal/metrics", tags=["internal-metrics"])


@router.get("")
def endpoint_metrics(_manager: Manager = Depends(require_manager)):
    return {"endpoints": request_metrics.snapshot()}
