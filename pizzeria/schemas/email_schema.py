from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field


class OrderConfirmationRequest(BaseModel):
    order_id: int = Field(..., alias="orderId")
    customer_email: EmailStr = Field(..., alias="customerEmail")
    customer_name: Optional[str] = Field(None, alias="customerName", max_length=200)

    model_config = {"populate_by_name": True}


class CampaignRequest(BaseModel):
    campaign_name: str = Field(..., min_length=1, alias="campaignName")
    subject: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)
    cta_text: Optional[str] = Field(None, alias="ctaText")
    cta_url: Optional[str] = Field(None, alias="ctaUrl")
    recipient_type: str = Field("all", alias="recipientType")
    accent_color: str = Field("#d73a31", alias="accentColor", pattern=r"^#[0-9a-fA-F]{6}$")

    model_config = {"populate_by_name": True}


class EmailSendResult(BaseModel):
    success: bool
    message: str
    email_id: Optional[str] = Field(None, alias="emailId")

    model_config = {"populate_by_name": True}


class CampaignResult(BaseModel):
    success: bool
    campaign_name: str = Field(alias="campaignName")
    total_recipients: int = Field(alias="totalRecipients")
    sent_successfully: int = Field(alias="sentSuccessfully")
    failed: int
    results: Dict[str, List[Dict[str, Any]]]

    model_config = {"populate_by_name": True}
