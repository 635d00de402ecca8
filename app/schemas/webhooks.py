"""
Inbound webhook payloads.

Each gateway's payload is validated into one of these models at the route
boundary; anything that does not fit is rejected before business logic runs.
"""
from typing import List, Optional
from pydantic import BaseModel, Field


class AsaasSubscriptionRef(BaseModel):
    id: str = Field(..., min_length=1)
    status: str = Field(..., min_length=1)


class AsaasWebhookEvent(BaseModel):
    """
    Asaas notification. Payment and subscription events both carry the
    subscription they belong to; only that part is used for reconciliation.
    """
    event: str = Field(..., min_length=1)
    subscription: AsaasSubscriptionRef


class StripePrice(BaseModel):
    id: str


class StripeSubscriptionItem(BaseModel):
    price: StripePrice


class StripeSubscriptionItems(BaseModel):
    data: List[StripeSubscriptionItem] = Field(default_factory=list)


class StripeSubscriptionObject(BaseModel):
    id: str = Field(..., min_length=1)
    customer: str = Field(..., min_length=1)
    status: str
    items: StripeSubscriptionItems = Field(default_factory=StripeSubscriptionItems)

    @property
    def price_id(self) -> Optional[str]:
        if not self.items.data:
            return None
        return self.items.data[0].price.id


class StripeEventData(BaseModel):
    object: dict


class StripeEvent(BaseModel):
    id: str
    type: str
    data: StripeEventData

    @property
    def is_subscription_event(self) -> bool:
        return self.type.startswith("customer.subscription.")

    def subscription(self) -> StripeSubscriptionObject:
        return StripeSubscriptionObject.model_validate(self.data.object)
