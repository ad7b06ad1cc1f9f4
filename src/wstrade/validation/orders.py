"""Pydantic model for order placement

Only checks what is needed to tell order kinds apart and to send each kind
with the fields it requires.
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class OrderRequest(BaseModel):
    """Request body for POST /orders"""

    account_id: str = Field(..., min_length=1, description="Trade account id")
    security_id: str = Field(..., min_length=1, description="Internal security id")
    order_type: Literal["buy_quantity", "sell_quantity", "buy_value"]
    order_sub_type: Literal["market", "limit", "stop_limit", "fractional"]
    time_in_force: Literal["day", "until_cancel"] = "day"
    quantity: int | None = Field(None, gt=0, description="Number of shares")
    limit_price: float | None = Field(None, gt=0)
    stop_price: float | None = Field(None, gt=0)
    market_value: float | None = Field(
        None, gt=0, description="Amount to invest (fractional orders)"
    )

    @model_validator(mode="after")
    def check_kind(self) -> "OrderRequest":
        """Validate the fields each order kind needs"""
        if self.order_sub_type == "fractional":
            if self.order_type != "buy_value":
                raise ValueError("fractional orders must be buy_value orders")
            if self.market_value is None:
                raise ValueError("market_value is required for fractional orders")
            return self

        if self.order_type == "buy_value":
            raise ValueError("buy_value orders must be fractional")
        if self.quantity is None:
            raise ValueError(f"quantity is required for {self.order_sub_type} orders")
        if self.order_sub_type in ("market", "limit", "stop_limit") and self.limit_price is None:
            raise ValueError(f"limit_price is required for {self.order_sub_type} orders")
        if self.order_sub_type == "stop_limit" and self.stop_price is None:
            raise ValueError("stop_price is required for stop_limit orders")
        return self

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)
