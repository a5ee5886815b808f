from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.config import Settings, get_settings
from app.schemas.message import Message
from app.services.llm_service import LLMRelay

router = APIRouter(tags=["Messages"])


def get_llm_relay(settings: Settings = Depends(get_settings)) -> LLMRelay:
    return LLMRelay.from_settings(settings)


@router.post("/message", response_model=None)
async def send_message(
    message: Message,
    api_version: Optional[str] = Query(None),
    relay: LLMRelay = Depends(get_llm_relay),
):
    # upstream body is returned as-is, without the data envelope
    return await relay.send(message, api_version)
