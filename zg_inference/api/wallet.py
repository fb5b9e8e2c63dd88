"""
Wallet API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.controller import SessionController, get_controller
from ..types import DiagnosticStepResponse, DiagnosticsResponse, WalletStatusResponse
from ..wallet import ProviderUnavailableError, UserRejectedError, WalletError


router = APIRouter(prefix="/wallet")


def _status(controller: SessionController) -> WalletStatusResponse:
    session = controller.wallet.session
    return WalletStatusResponse(
        connected=controller.is_connected,
        state=controller.wallet.state.value,
        address=session.address if session else None,
        chain_id=session.chain_id if session else None,
        provider_kind=session.provider_kind if session else None,
        balance_ether=session.balance_ether if session else None,
    )


@router.get("", response_model=WalletStatusResponse)
async def wallet_status(controller: SessionController = Depends(get_controller)):
    return _status(controller)


@router.post("/connect", response_model=WalletStatusResponse)
async def connect_wallet(controller: SessionController = Depends(get_controller)):
    """
    Connect the configured wallet.

    Returns 503 when no wallet provider is available and 403 when the user
    declines account access.
    """
    try:
        await controller.connect()
    except ProviderUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"title": e.title, "message": str(e)},
        )
    except UserRejectedError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e),
        )
    except WalletError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Connection failed: {e}",
        )
    return _status(controller)


@router.post("/disconnect", response_model=WalletStatusResponse)
async def disconnect_wallet(controller: SessionController = Depends(get_controller)):
    controller.disconnect()
    return _status(controller)


@router.post("/diagnostics", response_model=DiagnosticsResponse)
async def wallet_diagnostics(controller: SessionController = Depends(get_controller)):
    """Standalone connection test; does not change the wallet session."""
    result = await controller.run_diagnostics()
    return DiagnosticsResponse(
        ok=result.ok,
        provider_found=result.provider_found,
        accounts=result.accounts,
        steps=[
            DiagnosticStepResponse(name=step.name, ok=step.ok, detail=step.detail)
            for step in result.steps
        ],
        summary=result.summary,
    )
