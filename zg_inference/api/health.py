from fastapi import APIRouter, Depends
from typing import Dict, Any

from ..core.controller import SessionController, get_controller

router = APIRouter()


@router.get("/healthz")
async def health_check(controller: SessionController = Depends(get_controller)) -> Dict[str, Any]:
    """Health check covering wallet detection and the bound broker"""

    wallet_status = {
        "status": "healthy" if controller.wallet.detect() is not None else "unavailable",
        "connected": controller.is_connected,
    }

    if controller.broker is not None:
        broker_status = await controller.broker.health_check()
    else:
        broker_status = {"status": "unavailable", "reason": "wallet not connected"}

    healthy = wallet_status["status"] == "healthy" and broker_status["status"] in ("healthy", "unavailable")

    return {
        "status": "healthy" if healthy else "degraded",
        "wallet": wallet_status,
        "broker": broker_status,
        "inference_running": controller.is_running,
    }
