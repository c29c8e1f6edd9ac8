"""Customer domain schemas."""

from pydantic import BaseModel, EmailStr

from app.shopify.schemas import MailingAddress, MailingAddressInput


class AddAddressRequest(BaseModel):
    email: EmailStr
    address: MailingAddressInput


class AddAddressResponse(BaseModel):
    success: bool = True
    address: MailingAddress
