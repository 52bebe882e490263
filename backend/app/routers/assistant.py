from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from app.core.logging import get_logger
from app.schemas.assistant import (
    AnalyzePromptRequest, AnalyzePromptResponse,
    SuggestTagsRequest, SuggestTagsResponse,
    FeedbackRequest, FeedbackResponse,
)
from app.services.exceptions import ConfigurationError, ServiceError
from app.services.feedback_mailer import FeedbackMailer, get_feedback_mailer
from app.services.prompt_assistant import PromptAssistant, get_prompt_assistant

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["assistant"])


def _configuration_failure(e: ConfigurationError) -> HTTPException:
    logger.error("Service not configured", error=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.post("/analyze-prompt", response_model=AnalyzePromptResponse)
async def analyze_prompt(
    payload: AnalyzePromptRequest,
    assistant: PromptAssistant = Depends(get_prompt_assistant)
):
    """Critique a prompt and propose an improved version"""
    if not payload.prompt:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Prompt is required")

    try:
        analysis = await run_in_threadpool(assistant.analyze_prompt, payload.prompt)
    except ConfigurationError as e:
        raise _configuration_failure(e)
    except ServiceError as e:
        logger.error(f"Error analyzing prompt: {str(e)}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")

    return {"analysis": analysis}


@router.post("/suggest-tags", response_model=SuggestTagsResponse)
async def suggest_tags(
    payload: SuggestTagsRequest,
    assistant: PromptAssistant = Depends(get_prompt_assistant)
):
    """Suggest a handful of lowercase tags for a prompt's content"""
    if not payload.prompt_content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Prompt content is required")

    try:
        tags = await run_in_threadpool(assistant.suggest_tags, payload.prompt_content)
    except ConfigurationError as e:
        raise _configuration_failure(e)
    except ServiceError as e:
        logger.error(f"Error suggesting tags: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error suggesting tags"
        )

    return {"tags": tags}


@router.post("/feedback", response_model=FeedbackResponse)
async def send_feedback(
    payload: FeedbackRequest,
    mailer: FeedbackMailer = Depends(get_feedback_mailer)
):
    """Forward a feedback message by email"""
    if not payload.message:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is required")

    try:
        await mailer.send(payload.message)
    except ConfigurationError as e:
        raise _configuration_failure(e)
    except ServiceError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send feedback"
        )

    return {"success": True}
