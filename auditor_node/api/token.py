"""
auditor_node/api/token.py
-------------------------

Token ledger surface. A transfer to the program account is a stake credit;
POST /token/stake is shorthand for exactly that.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..auditor_executor import AuditorExecutor
from .deps import get_executor, require_account, run

router = APIRouter(prefix="/token", tags=["token"])


class TransferRequest(BaseModel):
    to: str = Field(..., min_length=1)
    quantity: str = Field(..., description="e.g. '1000.0000 BOS'")
    memo: str = ""


class StakeRequest(BaseModel):
    quantity: str


@router.post("/transfer")
def transfer(
    body: TransferRequest,
    caller: str = Depends(require_account),
    ex: AuditorExecutor = Depends(get_executor),
) -> Dict[str, Any]:
    return run(ex.transfer, caller, body.to, body.quantity, body.memo)


@router.post("/stake")
def stake(
    body: StakeRequest,
    caller: str = Depends(require_account),
    ex: AuditorExecutor = Depends(get_executor),
) -> Dict[str, Any]:
    return run(ex.stake, caller, body.quantity)


@router.get("/balance/{account}")
def balance(account: str, ex: AuditorExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return {"account": account, "balances": ex.balances(account)}
