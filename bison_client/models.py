"""
Request/response models for the Bison REST API
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class BisonModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class TokenAuthorizationRequest(BisonModel):
    """Ask the API to authorize a position mint or burn"""
    chain: str = "base"
    market_id: str = Field(..., alias="marketId")
    number: int = Field(..., gt=0)
    action: Literal["mint", "burn"]
    side: Literal["yes", "no"]
    user_address: str = Field(..., alias="userAddress")


class TokenAuthorization(BisonModel):
    """Server-signed authorization for a vault mint/burn call"""
    uuid: str
    signature: str
    expires_at: int = Field(..., alias="expiresAt")


class PlaceOrderRequest(BisonModel):
    """Signed limit order"""
    chain: str = "base"
    market_id: str = Field(..., alias="marketId")
    number: int = Field(..., gt=0)
    price_myrs: int = Field(..., alias="priceMyrs", gt=0)
    action: Literal["buy", "sell"]
    side: Literal["yes", "no"]
    user_address: str = Field(..., alias="userAddress")
    signature: str
    expiry: int


class CancelOrderRequest(BisonModel):
    """Cancel a resting order"""
    chain: str = "base"
    order_id: str = Field(..., alias="orderId")
    user_address: str = Field(..., alias="userAddress")
    signature: Optional[str] = None
