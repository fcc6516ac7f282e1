from fastapi import APIRouter, Request
from pydantic import BaseModel

from chainslots.core.machine import SlotMachine
from chainslots.core.money import display
from chainslots.core.slots import paytable
from chainslots.core.logger import get_logger

logger = get_logger("api")

router = APIRouter()

# ==================== Request Models ====================

class BetRequest(BaseModel):
    bet: float


def get_machine(request: Request) -> SlotMachine:
    return request.app.state.machine


# ==================== Wallet ====================

@router.get("/wallet")
async def get_wallet(request: Request):
    return get_machine(request).wallet.to_dict()


@router.post("/wallet/connect")
async def connect_wallet(request: Request):
    return get_machine(request).connect_wallet()


@router.post("/wallet/disconnect")
async def disconnect_wallet(request: Request):
    return get_machine(request).disconnect_wallet()


# ==================== Slots ====================

@router.get("/games/slots/paytable")
async def slots_paytable():
    return {"paytable": paytable()}


@router.post("/games/slots/spin")
async def slots_spin(request: Request, data: BetRequest):
    machine = get_machine(request)

    # Rejections (LedgerError) are rendered by the app-level handler
    settlement = await machine.spin(data.bet)
    if settlement is None:
        logger.info("Spin cancelled before it settled")
        return {"cancelled": True, "balance": display(machine.wallet.balance)}

    return {"cancelled": False, **settlement.to_dict()}


# ==================== Ledger ====================

@router.get("/transactions")
async def get_transactions(request: Request):
    machine = get_machine(request)
    return {"transactions": [tx.to_dict() for tx in machine.transactions()]}


@router.get("/stats")
async def get_stats(request: Request):
    return get_machine(request).totals().to_dict()


@router.get("/state")
async def get_state(request: Request):
    return get_machine(request).snapshot()
