from fastapi import APIRouter, Depends

from ..core.controller import SessionController, get_controller
from ..types import LogEntryResponse, LogsResponse

router = APIRouter(prefix="/logs")


@router.get("", response_model=LogsResponse)
async def list_logs(controller: SessionController = Depends(get_controller)):
    entries = controller.log.snapshot()
    return LogsResponse(
        entries=[LogEntryResponse(timestamp=e.timestamp, message=e.message) for e in entries],
        count=len(entries),
    )


@router.delete("", response_model=LogsResponse)
async def clear_logs(controller: SessionController = Depends(get_controller)):
    controller.log.clear()
    return LogsResponse()
