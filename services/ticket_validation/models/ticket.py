"""Modelos Pydantic para verificación de tickets"""
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional, Union
from datetime import datetime


class VerifyTicketRequest(BaseModel):
    """Id de ticket o payload escaneado del QR (string JSON u objeto)"""
    ticket_id: Optional[str] = Field(None, alias="ticketId")
    qr_data: Optional[Union[str, Dict[str, Any]]] = Field(None, alias="qrData")

    class Config:
        populate_by_name = True


class VerificationResult(BaseModel):
    valid: bool
    already_verified: bool = Field(False, alias="alreadyVerified")
    reason: Optional[str] = None
    message: str
    verified_at: Optional[datetime] = Field(None, alias="verifiedAt")
    ticket: Optional[Dict[str, Any]] = None
    event: Optional[Dict[str, Any]] = None
    verified_by: Optional[str] = Field(None, alias="verifiedBy")

    class Config:
        populate_by_name = True
