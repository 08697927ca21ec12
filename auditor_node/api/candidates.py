"""
auditor_node/api/candidates.py
------------------------------

Candidate lifecycle.

    GET  /candidates              all candidate records
    GET  /candidates/{name}       one record + bio + seat flag
    POST /candidates/nominate     stake must already be locked
    POST /candidates/withdraw
    POST /candidates/fire         mid capability
    POST /candidates/bio
    POST /candidates/unstake
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..auditor_executor import AuditorExecutor
from .deps import get_executor, require_account, run

router = APIRouter(prefix="/candidates", tags=["candidates"])


class CandidateRequest(BaseModel):
    cand: str = Field(..., min_length=1)


class FireCandidateRequest(BaseModel):
    cand: str = Field(..., min_length=1)
    lockup_stake: bool = False


class BioRequest(BaseModel):
    cand: str = Field(..., min_length=1)
    # length is enforced by the runtime so the error carries its own code
    bio: str = ""


@router.get("")
def list_candidates(ex: AuditorExecutor = Depends(get_executor)) -> Dict[str, Any]:
    items = ex.candidates()
    return {"count": len(items), "candidates": items}


@router.get("/{name}")
def get_candidate(name: str, ex: AuditorExecutor = Depends(get_executor)) -> Dict[str, Any]:
    cand = ex.candidate(name)
    if cand is None:
        raise HTTPException(status_code=404, detail={"error": "candidate_not_found", "message": name})
    return cand


@router.post("/nominate")
def nominate(
    body: CandidateRequest,
    caller: str = Depends(require_account),
    ex: AuditorExecutor = Depends(get_executor),
) -> Dict[str, Any]:
    return run(ex.nominate, caller, body.cand)


@router.post("/withdraw")
def withdraw(
    body: CandidateRequest,
    caller: str = Depends(require_account),
    ex: AuditorExecutor = Depends(get_executor),
) -> Dict[str, Any]:
    return run(ex.withdraw, caller, body.cand)


@router.post("/fire")
def fire_candidate(
    body: FireCandidateRequest,
    caller: str = Depends(require_account),
    ex: AuditorExecutor = Depends(get_executor),
) -> Dict[str, Any]:
    return run(ex.fire_candidate, caller, body.cand, body.lockup_stake)


@router.post("/bio")
def update_bio(
    body: BioRequest,
    caller: str = Depends(require_account),
    ex: AuditorExecutor = Depends(get_executor),
) -> Dict[str, Any]:
    return run(ex.update_bio, caller, body.cand, body.bio)


@router.post("/unstake")
def unstake(
    body: CandidateRequest,
    caller: str = Depends(require_account),
    ex: AuditorExecutor = Depends(get_executor),
) -> Dict[str, Any]:
    return run(ex.unstake, caller, body.cand)
