from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, PlainSerializer

from freightmatch.services.pricing import format_amount

# Money goes over the wire as a two-decimal string ("550.00")
Money = Annotated[Decimal, PlainSerializer(format_amount, return_type=str, when_used="unless-none")]


class SuccessResponse(BaseModel):
    success: bool = True
    message: str | None = None
