from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException

from ..auditor_executor import AuditorExecutor
from .deps import get_executor, require_account, run

router = APIRouter(prefix="/config", tags=["config"])


@router.get("")
def get_config(ex: AuditorExecutor = Depends(get_executor)) -> Dict[str, Any]:
    cfg = ex.config()
    if cfg is None:
        raise HTTPException(status_code=404, detail={"error": "config_not_set", "message": "contract is not configured"})
    return cfg


@router.post("")
def update_config(
    body: Dict[str, Any] = Body(...),
    caller: str = Depends(require_account),
    ex: AuditorExecutor = Depends(get_executor),
) -> Dict[str, Any]:
    # validated by ContractConfig inside the operation
    return run(ex.update_config, caller, body)
