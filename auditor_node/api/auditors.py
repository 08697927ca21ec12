"""
auditor_node/api/auditors.py
----------------------------

Committee endpoints: roster, tenure status, resign / fire, rotation.
newtenure takes no identity; anyone may trigger a rotation once the gates pass.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..auditor_executor import AuditorExecutor
from .deps import get_executor, optional_account, require_account, run

router = APIRouter(prefix="/auditors", tags=["auditors"])


class AuditorRequest(BaseModel):
    auditor: str = Field(..., min_length=1)


class NewTenureRequest(BaseModel):
    candidates: List[str] = Field(default_factory=list)
    message: str = ""


@router.get("")
def list_auditors(ex: AuditorExecutor = Depends(get_executor)) -> Dict[str, Any]:
    names = ex.auditors()
    return {"count": len(names), "auditors": names}


@router.get("/tenure")
def tenure(ex: AuditorExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return ex.tenure()


@router.post("/resign")
def resign(
    body: AuditorRequest,
    caller: str = Depends(require_account),
    ex: AuditorExecutor = Depends(get_executor),
) -> Dict[str, Any]:
    return run(ex.resign, caller, body.auditor)


@router.post("/fire")
def fire_auditor(
    body: AuditorRequest,
    caller: str = Depends(require_account),
    ex: AuditorExecutor = Depends(get_executor),
) -> Dict[str, Any]:
    return run(ex.fire_auditor, caller, body.auditor)


@router.post("/newtenure")
def new_tenure(
    body: NewTenureRequest,
    caller: str = Depends(optional_account),
    ex: AuditorExecutor = Depends(get_executor),
) -> Dict[str, Any]:
    return run(ex.new_tenure, caller, body.candidates, body.message)
