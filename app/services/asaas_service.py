"""
Asaas REST client for customers and subscriptions.
"""
import logging
from datetime import date
from typing import Optional, Tuple

import httpx

from app.core.config import Settings
from app.core.exceptions import PaymentGatewayError

logger = logging.getLogger(__name__)

PROVIDER = "asaas"


class AsaasClient:
    """
    Synchronous client for the Asaas v3 API.

    Use as a context manager; the connection pool it creates is closed on
    exit. An injected `http_client` stays owned by the caller.
    """

    def __init__(self, settings: Settings, http_client: Optional[httpx.Client] = None):
        self.api_key = settings.asaas_api_key
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            base_url=settings.asaas_api_url,
            timeout=httpx.Timeout(15.0),
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "AsaasClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _post(self, path: str, payload: dict, what: str) -> dict:
        if not self.api_key:
            raise PaymentGatewayError(PROVIDER, "Asaas not configured - ASAAS_API_KEY required")

        try:
            response = self._client.post(
                path,
                json=payload,
                headers={
                    "access_token": self.api_key,
                    "Content-Type": "application/json",
                },
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            detail = e.response.text
            logger.error(f"Asaas error creating {what}: status={e.response.status_code}, body={detail}")
            raise PaymentGatewayError(PROVIDER, f"Failed to create {what} at payment gateway", detail) from e
        except httpx.HTTPError as e:
            logger.error(f"Asaas unreachable while creating {what}: {e}")
            raise PaymentGatewayError(PROVIDER, f"Failed to create {what} at payment gateway") from e

    def create_customer(self, name: str, email: str, cpf_cnpj: Optional[str], mobile_phone: Optional[str]) -> str:
        data = self._post(
            "/customers",
            {
                "name": name,
                "email": email,
                "cpfCnpj": cpf_cnpj,
                "mobilePhone": mobile_phone,
            },
            "customer",
        )
        return data["id"]

    def create_subscription(
        self,
        customer_id: str,
        plan_id: str,
        billing_type: str = "UNDEFINED",
        next_due_date: Optional[date] = None,
    ) -> Tuple[str, Optional[str]]:
        """
        Create a subscription for an existing customer.

        Returns:
            (subscription_id, checkout_url)
        """
        logger.info(f"Creating Asaas subscription for customer={customer_id}, plan={plan_id}")
        data = self._post(
            "/subscriptions",
            {
                "customer": customer_id,
                "billingType": billing_type,
                "nextDueDate": (next_due_date or date.today()).isoformat(),
                "plan": plan_id,
            },
            "subscription",
        )
        logger.info(f"Asaas subscription {data['id']} created for customer {customer_id}")
        return data["id"], data.get("checkoutUrl")
