from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator

from aurora.core.payload import body_of
from aurora.db.session import get_visitor_session
from aurora.models.order import BuyerDetails
from aurora.models.session import VisitorSession
from aurora.services.checkout import CheckoutService, get_checkout_service

router = APIRouter()


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None

    # Accepted from the form and dropped; nothing is charged
    card_number: Optional[str] = Field(default=None, alias="cardNumber")
    expiry: Optional[str] = None
    cvv: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def keep_verbatim(cls, value):
        if value is None or isinstance(value, str):
            return value
        return str(value)

    def buyer(self) -> BuyerDetails:
        return BuyerDetails(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            address=self.address,
            city=self.city,
            state=self.state,
            zip=self.zip,
            country=self.country
        )


@router.post("/checkout")
def checkout(
    session: VisitorSession = Depends(get_visitor_session),
    order_in: CheckoutRequest = Depends(body_of(CheckoutRequest)),
    service: CheckoutService = Depends(get_checkout_service)
):
    order = service.checkout(session, order_in.buyer())
    return {"success": True, "orderId": order.id}


@router.get("/order/{order_id}")
def get_order(
    order_id: str,
    session: VisitorSession = Depends(get_visitor_session),
    service: CheckoutService = Depends(get_checkout_service)
):
    return service.get_order(session, order_id).as_payload()
