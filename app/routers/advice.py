from typing import Dict, Optional
import logging

from fastapi import APIRouter

from app.core.config import settings
from app.core.errors import ApiError
from app.db import dynamo
from app.models.base import CamelModel
from app.utils.advisor import AdvisorNotConfigured, AdvisorUnavailable, build_context, build_prompt, generate_advice

router = APIRouter()
logger = logging.getLogger(__name__)


class AdviceRequest(CamelModel):
    user_id: int
    question: Optional[str] = None


def _missing_key_error() -> ApiError:
    return ApiError(
        500,
        "Gemini API key not configured",
        "MISSING_API_KEY",
        message="Please set GEMINI_API_KEY environment variable",
    )


@router.post("/advice")
def get_advice(request: AdviceRequest) -> Dict:
    if not settings.GEMINI_API_KEY:
        raise _missing_key_error()

    context = build_context(dynamo.get_transactions_for_user(request.user_id))
    prompt = build_prompt(context, request.question)

    try:
        advice = generate_advice(prompt)
    except AdvisorNotConfigured:
        raise _missing_key_error()
    except AdvisorUnavailable as e:
        raise ApiError(500, "Failed to get AI advice", "GEMINI_API_ERROR", details=str(e)) from e

    logger.info(f"Generated advice for user {request.user_id}")
    return {
        "advice": advice,
        "context": {
            "totalSpent": context["totalSpent"],
            "totalIncome": context["totalIncome"],
            "netBalance": context["netBalance"],
            "topCategories": context["topCategories"],
        },
    }
