"""Tiered content feature."""

from .models import TierData, TierResponse
from .routes import router

__all__ = ["TierData", "TierResponse", "router"]
