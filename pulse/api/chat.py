"""
FastAPI router for the analytics assistant.

Implements POST /analytics/chat:
- {"action": "report", "reportType": "daily|weekly|monthly"} generates a
  canned written report
- otherwise {"message": ..., "history": [...]} answers a question, letting
  the assistant call analytics tools as needed

Response shape: {"success": true, "response": "<assistant text>"}.
"""

import logging

from fastapi import APIRouter, HTTPException

from pulse.core.dependencies import AssistantClientDep, GatewayDep, SettingsDep
from pulse.models.schemas import ChatRequest, ChatResponse
from pulse.services.assistant import chat, generate_report


# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["assistant"])

REPORT_ACTION = "report"


@router.post(
    '/chat',
    response_model=ChatResponse,
    summary="Chat with the Analytics Assistant",
)
async def post_chat(
    body: ChatRequest,
    client: AssistantClientDep,
    gateway: GatewayDep,
    settings: SettingsDep,
) -> ChatResponse:
    """
    Answer a chat message or generate a canned report.

    Raises:
        HTTPException 400: If no message is given and action is not "report".
        HTTPException 500: If the assistant or an analytics query fails.
    """
    if body.action != REPORT_ACTION and not body.message:
        raise HTTPException(status_code=400, detail="Message is required")

    try:
        if body.action == REPORT_ACTION:
            logger.info(f"Generating {body.reportType.value} report")
            text = await generate_report(
                client,
                gateway,
                body.reportType,
                model=settings.assistant_model,
                max_tokens=settings.assistant_max_tokens,
                max_tool_rounds=settings.assistant_max_tool_rounds,
            )
        else:
            logger.info(f"Chat message received ({len(body.history)} prior turns)")
            text = await chat(
                client,
                gateway,
                body.message,
                body.history,
                model=settings.assistant_model,
                max_tokens=settings.assistant_max_tokens,
                max_tool_rounds=settings.assistant_max_tool_rounds,
            )

        return ChatResponse(success=True, response=text)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Chat API error: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Assistant request failed: {str(e)}"
        )
