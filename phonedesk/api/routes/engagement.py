"""Engagement classification route."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from phonedesk.analytics.engagement import EngagementSignals, classify_category
from phonedesk.api.deps import get_now

router = APIRouter(prefix="/api/engagement", tags=["engagement"])


class ClassifyRequest(BaseModel):
    created_at: int
    last_customer_message_at: int | None = None
    last_customer_message_has_budget_keyword: bool = False
    priority_value_etb: float | None = None
    clicked_continue: bool = False
    has_customer_messaged: bool = False
    has_admin_replied: bool = False


class ClassifyResponse(BaseModel):
    category: str


@router.post("/classify", response_model=ClassifyResponse)
async def classify(request: ClassifyRequest, now: int = Depends(get_now)):
    """Classify a thread or exchange as hot, warm or cold."""
    category = classify_category(EngagementSignals(**request.model_dump()), now)
    return ClassifyResponse(category=category.value)
