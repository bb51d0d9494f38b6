"""Tiered content routes. Prices live in the paywall pricing table."""

from datetime import datetime, timezone
from fastapi import APIRouter
import structlog

from tiers.models import TierData, TierResponse

logger = structlog.get_logger()

router = APIRouter()

PREMIUM_FEATURES = ["Advanced analytics", "Real-time updates", "Priority support"]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/free-data", response_model=TierResponse, response_model_exclude_none=True)
async def free_data():
    """Free tier; never requires payment."""
    return TierResponse(message="This is free data", tier="free", timestamp=_now())


@router.get("/premium-data", response_model=TierResponse, response_model_exclude_none=True)
async def premium_data():
    """Premium tier content."""
    logger.info("tier_served", tier="premium")
    return TierResponse(
        message="Welcome to premium tier!",
        tier="premium",
        data=TierData(
            secret="This data costs 10000 SPL402",
            features=PREMIUM_FEATURES,
            timestamp=_now(),
        ),
    )


@router.get("/ultra-premium", response_model=TierResponse, response_model_exclude_none=True)
async def ultra_premium():
    """Ultra-premium tier content."""
    logger.info("tier_served", tier="ultra-premium")
    return TierResponse(
        message="Ultra premium content unlocked!",
        tier="ultra-premium",
        data=TierData(
            secret="This exclusive data costs 50000 SPL402",
            features=PREMIUM_FEATURES + ["Dedicated account manager", "Custom integrations"],
            insights={
                "market_analysis": "Bullish trend detected",
                "recommendation": "Strong buy",
                "confidence": 0.95,
            },
            timestamp=_now(),
        ),
    )


@router.get("/enterprise-data", response_model=TierResponse, response_model_exclude_none=True)
async def enterprise_data():
    """Enterprise tier content."""
    logger.info("tier_served", tier="enterprise")
    return TierResponse(
        message="Enterprise tier activated!",
        tier="enterprise",
        data=TierData(
            secret="Top-tier enterprise data costs 100000 SPL402",
            features=[
                "All premium features",
                "White-label solution",
                "Custom SLA",
                "24/7 dedicated support",
                "Advanced security features",
                "API rate limit: Unlimited",
            ],
            enterprise_insights={
                "market_depth": "Complete order book analysis",
                "trading_signals": ["BUY", "HOLD", "ACCUMULATE"],
                "risk_score": 0.15,
                "recommended_position": "15% portfolio allocation",
            },
            timestamp=_now(),
        ),
    )
