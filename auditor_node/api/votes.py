from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..auditor_executor import AuditorExecutor
from .deps import get_executor, require_account, run

router = APIRouter(prefix="/votes", tags=["votes"])


class VoteRequest(BaseModel):
    voter: str = Field(..., min_length=1)
    # empty list retracts the vote
    candidates: List[str] = Field(default_factory=list)


@router.get("")
def list_votes(ex: AuditorExecutor = Depends(get_executor)) -> Dict[str, Any]:
    items = ex.votes()
    return {"count": len(items), "votes": items}


@router.get("/{voter}")
def get_vote(voter: str, ex: AuditorExecutor = Depends(get_executor)) -> Dict[str, Any]:
    rec = ex.vote_of(voter)
    if rec is None:
        raise HTTPException(status_code=404, detail={"error": "vote_not_found", "message": voter})
    return rec


@router.post("")
def cast_vote(
    body: VoteRequest,
    caller: str = Depends(require_account),
    ex: AuditorExecutor = Depends(get_executor),
) -> Dict[str, Any]:
    return run(ex.vote, caller, body.voter, body.candidates)
