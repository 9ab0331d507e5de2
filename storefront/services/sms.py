"""
SMS Service - templated text messages through an SMS gateway.

Supports:
- Verification codes
- Order status updates and delivery reminders
- Low stock alerts for staff
- Promotional, appointment, support and emergency messages
- Bulk sends with one outcome per recipient

The gateway is passed in explicitly. When Twilio credentials are missing the
service is built with ``UnavailableSmsGateway`` and every send reports
"SMS service not configured" instead of calling out.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import httpx

from storefront.config import Settings, settings
from storefront.services.exceptions import ServiceUnavailableError, SmsDeliveryError

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "SMS service not configured"

_PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")


class SmsKind(str, Enum):
    """Types of text messages."""

    VERIFICATION = "verification"
    ORDER_STATUS = "order_status"
    DELIVERY_REMINDER = "delivery_reminder"
    LOW_STOCK = "low_stock"
    PROMOTIONAL = "promotional"
    APPOINTMENT = "appointment"
    SUPPORT = "support"
    EMERGENCY = "emergency"
    BULK = "bulk"


ORDER_STATUS_MESSAGES: Dict[str, str] = {
    "confirmed": "Your order has been confirmed and is being processed.",
    "processing": "Your order is being prepared for shipping.",
    "shipped": "Your order has been shipped and is on its way.",
    "out_for_delivery": "Your order is out for delivery today.",
    "delivered": "Your order has been delivered successfully.",
    "cancelled": "Your order has been cancelled.",
    "refunded": "Your order has been refunded.",
}

SUPPORT_STATUS_MESSAGES: Dict[str, str] = {
    "open": "Your support ticket has been opened and is being reviewed.",
    "in_progress": "Your support ticket is being worked on.",
    "resolved": "Your support ticket has been resolved.",
    "closed": "Your support ticket has been closed.",
}

DEFAULT_STATUS_MESSAGE = "Status updated"

MESSAGE_STATUSES = ("delivered", "failed", "pending", "sent", "undelivered")


def validate_phone_number(phone_number: str) -> bool:
    """Loose check: optional leading +, then digits, spaces, dashes or parentheses."""
    if not phone_number:
        return False
    if not _PHONE_PATTERN.match(phone_number):
        return False
    return any(ch.isdigit() for ch in phone_number)


def format_phone_number(phone_number: str) -> str:
    """Strip everything except digits and +, and make sure it starts with +."""
    formatted = re.sub(r"[^\d+]", "", phone_number)
    if not formatted.startswith("+"):
        formatted = "+" + formatted
    return formatted


class SmsGateway(ABC):
    """Transport for text messages."""

    is_available: bool = True

    @abstractmethod
    async def send(self, to: str, body: str) -> str:
        """Send a message and return the provider message id."""

    @abstractmethod
    async def fetch_account(self) -> Dict[str, Any]:
        """Fetch the provider account (connectivity check)."""

    @abstractmethod
    async def fetch_message(self, message_id: str) -> Dict[str, Any]:
        """Fetch a previously sent message."""

    @abstractmethod
    async def list_messages(
        self, sent_after: Optional[datetime] = None, sent_before: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """List messages sent within a date range."""


class UnavailableSmsGateway(SmsGateway):
    """Stand-in used when no provider credentials are configured."""

    is_available = False

    async def send(self, to: str, body: str) -> str:
        raise ServiceUnavailableError(NOT_CONFIGURED)

    async def fetch_account(self) -> Dict[str, Any]:
        raise ServiceUnavailableError(NOT_CONFIGURED)

    async def fetch_message(self, message_id: str) -> Dict[str, Any]:
        raise ServiceUnavailableError(NOT_CONFIGURED)

    async def list_messages(
        self, sent_after: Optional[datetime] = None, sent_before: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        raise ServiceUnavailableError(NOT_CONFIGURED)


class TwilioSmsGateway(SmsGateway):
    """Twilio REST API client."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        api_url: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            account_sid: Twilio account SID
            auth_token: Twilio auth token
            from_number: Sender phone number in E.164 format
            api_url: Base URL of the Twilio REST API
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.api_url}/Accounts/{self.account_sid}",
            auth=(self.account_sid, self.auth_token),
            timeout=self.timeout,
            transport=self.transport,
        )

    @staticmethod
    def _raise_for_error(response: httpx.Response) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if response.status_code >= 400:
            details = payload if isinstance(payload, dict) else {}
            message = details.get("message") or response.text or "SMS gateway error"
            raise SmsDeliveryError(message, code=details.get("code", response.status_code))
        if not isinstance(payload, dict):
            raise SmsDeliveryError(
                "Unexpected SMS gateway response", code=response.status_code
            )
        return payload

    async def send(self, to: str, body: str) -> str:
        try:
            async with self._client() as client:
                response = await client.post(
                    "/Messages.json",
                    data={"To": to, "From": self.from_number, "Body": body},
                )
        except httpx.HTTPError as e:
            raise SmsDeliveryError(f"SMS gateway unreachable: {e}") from e
        sid = self._raise_for_error(response).get("sid")
        if not sid:
            raise SmsDeliveryError("SMS gateway response has no message sid")
        return sid

    async def fetch_account(self) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.get(f"{self.api_url}/Accounts/{self.account_sid}.json")
        except httpx.HTTPError as e:
            raise SmsDeliveryError(f"SMS gateway unreachable: {e}") from e
        return self._raise_for_error(response)

    async def fetch_message(self, message_id: str) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.get(f"/Messages/{message_id}.json")
        except httpx.HTTPError as e:
            raise SmsDeliveryError(f"SMS gateway unreachable: {e}") from e
        return self._raise_for_error(response)

    async def list_messages(
        self, sent_after: Optional[datetime] = None, sent_before: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        params: Dict[str, str] = {"PageSize": "1000"}
        if sent_after:
            params["DateSent>"] = sent_after.strftime("%Y-%m-%d")
        if sent_before:
            params["DateSent<"] = sent_before.strftime("%Y-%m-%d")

        messages: List[Dict[str, Any]] = []
        try:
            async with self._client() as client:
                response = await client.get("/Messages.json", params=params)
                payload = self._raise_for_error(response)
                messages.extend(payload.get("messages", []))

                # Follow pagination links until the last page
                while payload.get("next_page_uri"):
                    response = await client.get(
                        httpx.URL(self.api_url).join(payload["next_page_uri"])
                    )
                    payload = self._raise_for_error(response)
                    messages.extend(payload.get("messages", []))
        except httpx.HTTPError as e:
            raise SmsDeliveryError(f"SMS gateway unreachable: {e}") from e
        return messages


def create_sms_gateway(config: Settings = settings) -> SmsGateway:
    """Build the gateway for the configured credentials."""
    if not config.sms_configured:
        logger.warning("Twilio credentials not configured, SMS service will be disabled")
        return UnavailableSmsGateway()
    return TwilioSmsGateway(
        account_sid=config.TWILIO_ACCOUNT_SID,
        auth_token=config.TWILIO_AUTH_TOKEN,
        from_number=config.TWILIO_PHONE_NUMBER,
        api_url=config.TWILIO_API_URL,
        timeout=config.HTTP_TIMEOUT_SECONDS,
    )


@dataclass
class SmsResult:
    """Outcome of a single send."""

    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BulkSmsOutcome:
    """Outcome for one recipient of a bulk send."""

    phone_number: str
    status: str  # "sent" or "failed"
    message_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"phoneNumber": self.phone_number, "status": self.status}
        if self.message_id:
            payload["messageId"] = self.message_id
        if self.error:
            payload["error"] = self.error
        return payload


class SmsService:
    """
    Service for sending templated text messages.

    Usage:
        service = SmsService(create_sms_gateway(settings))
        result = await service.send_order_status_update("+14155551234", "ORD-001", "shipped")
    """

    def __init__(self, gateway: SmsGateway, brand: str = "DollersElectro"):
        self.gateway = gateway
        self.brand = brand

    @property
    def is_available(self) -> bool:
        return self.gateway.is_available

    async def _deliver(self, phone_number: str, body: str, kind: SmsKind) -> SmsResult:
        if not self.is_available:
            logger.info("SMS service not available, skipping %s SMS", kind.value)
            return SmsResult(success=False, error=NOT_CONFIGURED)

        if not validate_phone_number(phone_number):
            logger.warning("Rejected %s SMS: invalid phone number %r", kind.value, phone_number)
            return SmsResult(success=False, error="Invalid phone number")

        try:
            message_id = await self.gateway.send(format_phone_number(phone_number), body)
        except (SmsDeliveryError, ServiceUnavailableError) as e:
            logger.error(f"Failed to send {kind.value} SMS: {e}")
            return SmsResult(success=False, error=str(e))

        logger.info("%s SMS sent: %s", kind.value, message_id)
        return SmsResult(success=True, message_id=message_id)

    async def send_verification_code(self, phone_number: str, code: str) -> SmsResult:
        body = f"Your {self.brand} verification code is: {code}. Valid for 10 minutes."
        return await self._deliver(phone_number, body, SmsKind.VERIFICATION)

    async def send_order_status_update(
        self, phone_number: str, order_number: str, status: str
    ) -> SmsResult:
        status_message = ORDER_STATUS_MESSAGES.get(status, DEFAULT_STATUS_MESSAGE)
        body = f"Order #{order_number}: {status_message}. {self.brand}"
        return await self._deliver(phone_number, body, SmsKind.ORDER_STATUS)

    async def send_delivery_reminder(
        self, phone_number: str, order_number: str, estimated_delivery: str
    ) -> SmsResult:
        body = (
            f"Reminder: Your order #{order_number} is scheduled for delivery on "
            f"{estimated_delivery}. Please ensure someone is available to receive it. {self.brand}"
        )
        return await self._deliver(phone_number, body, SmsKind.DELIVERY_REMINDER)

    async def send_low_stock_alert(
        self, phone_number: str, product_name: str, current_stock: int
    ) -> SmsResult:
        body = (
            f"Low Stock Alert: {product_name} is running low ({current_stock} remaining). "
            f"Please restock soon. {self.brand}"
        )
        return await self._deliver(phone_number, body, SmsKind.LOW_STOCK)

    async def send_promotional(self, phone_number: str, promo_message: str) -> SmsResult:
        body = f"{promo_message} {self.brand}"
        return await self._deliver(phone_number, body, SmsKind.PROMOTIONAL)

    async def send_appointment_reminder(
        self, phone_number: str, appointment_date: str, appointment_time: str
    ) -> SmsResult:
        body = (
            f"Reminder: You have an appointment scheduled for {appointment_date} "
            f"at {appointment_time}. {self.brand}"
        )
        return await self._deliver(phone_number, body, SmsKind.APPOINTMENT)

    async def send_support_ticket_update(
        self, phone_number: str, ticket_number: str, status: str
    ) -> SmsResult:
        status_message = SUPPORT_STATUS_MESSAGES.get(status, DEFAULT_STATUS_MESSAGE)
        body = f"Support Ticket #{ticket_number}: {status_message}. {self.brand}"
        return await self._deliver(phone_number, body, SmsKind.SUPPORT)

    async def send_emergency_notification(
        self, phone_number: str, emergency_message: str
    ) -> SmsResult:
        body = f"URGENT: {emergency_message} {self.brand}"
        return await self._deliver(phone_number, body, SmsKind.EMERGENCY)

    async def send_bulk(
        self, phone_numbers: Sequence[str], message: str
    ) -> List[BulkSmsOutcome]:
        """Send one message to many recipients, one after the other.

        Every recipient gets exactly one outcome, in input order. A failure
        for one recipient never stops the remaining sends.
        """
        outcomes: List[BulkSmsOutcome] = []
        for phone_number in phone_numbers:
            try:
                result = await self._deliver(phone_number, message, SmsKind.BULK)
            except Exception as e:
                logger.exception(f"Bulk SMS to {phone_number} failed: {e}")
                result = SmsResult(success=False, error=str(e) or type(e).__name__)
            if result.success:
                outcomes.append(
                    BulkSmsOutcome(phone_number, status="sent", message_id=result.message_id)
                )
            else:
                outcomes.append(BulkSmsOutcome(phone_number, status="failed", error=result.error))

        sent = sum(1 for outcome in outcomes if outcome.status == "sent")
        logger.info(
            "Bulk SMS completed: %d messages processed, %d sent, %d failed",
            len(outcomes),
            sent,
            len(outcomes) - sent,
        )
        return outcomes

    async def test_connection(self) -> bool:
        """Check the gateway credentials by fetching the account."""
        if not self.is_available:
            return False
        try:
            account = await self.gateway.fetch_account()
        except (SmsDeliveryError, ServiceUnavailableError) as e:
            logger.error(f"SMS service test failed: {e}")
            return False
        logger.info("SMS service is ready. Account: %s", account.get("friendly_name"))
        return True

    async def get_delivery_status(self, message_id: str) -> Dict[str, Any]:
        """Return the provider's view of a sent message."""
        message = await self.gateway.fetch_message(message_id)
        return {
            "sid": message.get("sid"),
            "status": message.get("status"),
            "direction": message.get("direction"),
            "from": message.get("from"),
            "to": message.get("to"),
            "body": message.get("body"),
            "dateCreated": message.get("date_created"),
            "dateSent": message.get("date_sent"),
            "dateUpdated": message.get("date_updated"),
            "errorCode": message.get("error_code"),
            "errorMessage": message.get("error_message"),
        }

    async def get_usage_stats(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> Dict[str, int]:
        """Count messages per delivery status within a date range."""
        messages = await self.gateway.list_messages(start, end)
        stats = {"total": len(messages)}
        for status in MESSAGE_STATUSES:
            stats[status] = sum(1 for m in messages if m.get("status") == status)
        return stats


_sms_service: Optional[SmsService] = None


def get_sms_service() -> SmsService:
    """
    Get the process-wide SMS service.

    Creates it from settings on first use.
    """
    global _sms_service
    if _sms_service is None:
        _sms_service = SmsService(create_sms_gateway(settings), brand=settings.BRAND_NAME)
    return _sms_service
