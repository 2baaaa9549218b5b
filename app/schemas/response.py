from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Any


class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    error: str
    code: str
    details: Optional[Any] = None
    retry_after: Optional[int] = Field(default=None, alias="retryAfter")
    attempts_remaining: Optional[int] = Field(default=None, alias="attemptsRemaining")
