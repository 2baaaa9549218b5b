"""
app/schemas/verification.py

Purpose: Request/response schemas for the verification endpoints

- Field names on the wire are camelCase (phoneNumber, verificationCode)
- Presence checks are left to the service so missing fields produce
  the same messages as empty ones
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class SendCodeRequest(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "phoneNumber": "(555) 123-4567",
                "userEmail": "jane@example.com"
            }
        }
    )

    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    user_email: Optional[str] = Field(default=None, alias="userEmail")


class SendCodeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    method: str = Field(..., description="real_sms or demo_mode")
    phone_number: str = Field(..., alias="phoneNumber")
    message: str
    verification_code: Optional[str] = Field(
        default=None,
        alias="verificationCode",
        description="Only returned when code echo is enabled (never in production)"
    )
    message_sid: Optional[str] = Field(default=None, alias="messageSid")
    status: Optional[str] = None
    demo_message: Optional[str] = Field(default=None, alias="demoMessage")


class VerifyCodeRequest(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "phoneNumber": "+15551234567",
                "code": "042917"
            }
        }
    )

    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    code: Optional[str] = None


class VerifyCodeResponse(BaseModel):
    success: bool = True
    verified: bool = True
    message: str


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    timestamp: str
    service: str
    version: str
    sender: str
    sender_configured: bool = Field(..., alias="senderConfigured")
