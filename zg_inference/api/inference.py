from fastapi import APIRouter, Depends, HTTPException, status

from ..core.controller import InferenceInProgressError, SessionController, get_controller
from ..types import InferenceRunRequest, InferenceRunResponse

router = APIRouter(prefix="/inference")


@router.post("/run", response_model=InferenceRunResponse)
async def run_inference(
    request: InferenceRunRequest,
    controller: SessionController = Depends(get_controller),
):
    if not controller.is_connected:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Connect a wallet before running inference",
        )
    try:
        outcome = await controller.run_inference(request.message)
    except InferenceInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return InferenceRunResponse(
        response=outcome.response,
        error=outcome.error,
        via=outcome.reply.via if outcome.reply else None,
        model=outcome.reply.model if outcome.reply else None,
        running=controller.is_running,
    )


@router.get("/status")
async def inference_status(controller: SessionController = Depends(get_controller)):
    return {
        "running": controller.is_running,
        "last_response": controller.last_response,
    }
