from fastapi import APIRouter, Depends, HTTPException
from starlette.concurrency import run_in_threadpool

from duck_login.api.auth import require_api_key
from duck_login.api import flows
from duck_login.api.schemas import AccountView, FlowSnapshot, IdentifierRequest, OtpRequest, OutcomeResponse
from duck_login.core.orchestrator import LoginOrchestrator
from duck_login.store.account_repo import get_account

router = APIRouter(dependencies=[Depends(require_api_key)])


def _flow_or_404(flow_id: str) -> LoginOrchestrator:
    flow = flows.registry.get(flow_id)
    if flow is None:
        raise HTTPException(status_code=404, detail="Unknown login flow")
    return flow


@router.post("/login/flows", response_model=FlowSnapshot)
def create_flow():
    return flows.registry.create().snapshot()


@router.get("/login/flows/{flow_id}", response_model=FlowSnapshot)
def get_flow(flow_id: str):
    return _flow_or_404(flow_id).snapshot()


@router.post("/login/flows/{flow_id}/identifier", response_model=OutcomeResponse)
async def submit_identifier(flow_id: str, body: IdentifierRequest):
    flow = _flow_or_404(flow_id)
    out = await flow.submit_identifier(body.identifier)
    return out.to_dict()


@router.post("/login/flows/{flow_id}/otp", response_model=OutcomeResponse)
async def submit_otp(flow_id: str, body: OtpRequest):
    flow = _flow_or_404(flow_id)
    out = await flow.submit_otp(body.otp)
    return out.to_dict()


@router.post("/login/flows/{flow_id}/cancel", response_model=OutcomeResponse)
def cancel_otp(flow_id: str):
    return _flow_or_404(flow_id).cancel_otp().to_dict()


@router.get("/accounts/{index}", response_model=AccountView)
async def read_account(index: int):
    # Redis client is blocking
    rec = await run_in_threadpool(get_account, index)
    if rec is None:
        raise HTTPException(status_code=404, detail="Unknown account")
    return {"index": index, **rec.public_dict()}
