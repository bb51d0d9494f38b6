"""Payment challenge and proof models."""

from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field

PROTOCOL_VERSION = 1
SCHEME = "token-transfer"


class PaymentChallenge(BaseModel):
    """Server-issued description of the transfer a priced route requires."""
    recipient: str
    amount: int = Field(..., ge=0)
    network: str
    mint: str
    decimals: int = Field(6, ge=0)
    scheme: str = SCHEME
    resource: Optional[str] = None
    method: Optional[str] = None


class TransferPayload(BaseModel):
    """Details of the completed transfer embedded in a proof."""

    model_config = ConfigDict(populate_by_name=True)

    from_address: str = Field(..., alias="from")
    to: str
    amount: Union[int, float] = Field(..., ge=0)
    signature: str = Field(..., min_length=1)
    timestamp: int


class PaymentProof(BaseModel):
    """Client-built evidence of a transfer, sent in the X-Payment header."""

    model_config = ConfigDict(populate_by_name=True)

    spl402_version: int = Field(PROTOCOL_VERSION, alias="spl402Version")
    scheme: str = SCHEME
    network: str
    mint: str
    decimals: int = Field(..., ge=0)
    payload: TransferPayload

    def to_header(self) -> str:
        """JSON encoding used as the X-Payment header value."""
        return self.model_dump_json(by_alias=True)


class PaymentRequired(BaseModel):
    """Body of a 402 response."""
    error: str = "Payment required"
    details: Optional[str] = None
    payment: PaymentChallenge
