"""Tier content models."""

from typing import Any, Literal, Optional
from pydantic import BaseModel

Tier = Literal["free", "premium", "ultra-premium", "enterprise"]


class TierData(BaseModel):
    """Content unlocked by a paid tier."""
    secret: str
    features: list[str]
    insights: Optional[dict[str, Any]] = None
    enterprise_insights: Optional[dict[str, Any]] = None
    timestamp: str


class TierResponse(BaseModel):
    """Response of a tier route."""
    message: str
    tier: Tier
    data: Optional[TierData] = None
    timestamp: Optional[str] = None
