from __future__ import annotations

from typing import Dict

import httpx

from app.core.config import settings
from app.core.logger import logger
from app.utils.helpers import format_phone_number

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"
RESEND_EMAILS_URL = "https://api.resend.com/emails"


class NotificationService:
    """Outbound SMS / WhatsApp / email with a provider toggle per channel."""

    def __init__(self) -> None:
        self.sms_provider = (settings.SMS_PROVIDER or "dev").strip().lower()
        self.whatsapp_provider = (settings.WHATSAPP_PROVIDER or "dev").strip().lower()
        self.email_provider = (settings.EMAIL_PROVIDER or "dev").strip().lower()

    def _twilio_send(self, to: str, sender: str, body: str) -> None:
        sid = (settings.TWILIO_ACCOUNT_SID or "").strip()
        token = (settings.TWILIO_AUTH_TOKEN or "").strip()
        if not sid or not token or not sender:
            raise ValueError("Twilio config missing (TWILIO_ACCOUNT_SID/TWILIO_AUTH_TOKEN/sender)")
        with httpx.Client(timeout=20.0) as client:
            resp = client.post(
                TWILIO_MESSAGES_URL.format(sid=sid),
                data={"To": to, "From": sender, "Body": body},
                auth=(sid, token),
            )
            if resp.status_code >= 400:
                raise ValueError(f"Twilio send failed: {resp.status_code} {resp.text[:200]}")

    def send_sms(self, phone: str, message: str) -> Dict[str, object]:
        target = format_phone_number(phone) or phone
        provider = self.sms_provider
        if provider == "dev":
            logger.info("[DEV SMS] to=%s body=%s", target, message)
            return {"success": True, "provider": "dev", "target": target}
        if provider == "twilio":
            self._twilio_send(target, (settings.TWILIO_SMS_FROM or "").strip(), message)
            logger.info("SMS sent via twilio to=%s", target)
            return {"success": True, "provider": "twilio", "target": target}
        raise ValueError(f"Unsupported SMS_PROVIDER: {provider}")

    def send_whatsapp(self, phone: str, message: str) -> Dict[str, object]:
        target = format_phone_number(phone) or phone
        provider = self.whatsapp_provider
        if provider == "dev":
            logger.info("[DEV WHATSAPP] to=%s body=%s", target, message)
            return {"success": True, "provider": "dev", "target": target}
        if provider == "twilio":
            sender = (settings.TWILIO_WHATSAPP_FROM or "").strip()
            if sender and not sender.startswith("whatsapp:"):
                sender = f"whatsapp:{sender}"
            self._twilio_send(f"whatsapp:{target}", sender, message)
            logger.info("WhatsApp sent via twilio to=%s", target)
            return {"success": True, "provider": "twilio", "target": target}
        raise ValueError(f"Unsupported WHATSAPP_PROVIDER: {provider}")

    def send_email(self, email: str, subject: str, html: str) -> Dict[str, object]:
        target = (email or "").strip()
        provider = self.email_provider
        if provider == "dev":
            logger.info("[DEV EMAIL] to=%s subject=%s", target, subject)
            return {"success": True, "provider": "dev", "target": target}
        if provider == "resend":
            api_key = (settings.RESEND_API_KEY or "").strip()
            sender = (settings.EMAIL_FROM or "").strip()
            if not api_key or not sender:
                raise ValueError("Resend email config missing (RESEND_API_KEY/EMAIL_FROM)")
            payload = {
                "from": sender,
                "to": [target],
                "subject": subject,
                "html": html,
            }
            headers = {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
            with httpx.Client(timeout=20.0) as client:
                resp = client.post(RESEND_EMAILS_URL, json=payload, headers=headers)
                if resp.status_code >= 400:
                    raise ValueError(f"Resend email failed: {resp.status_code} {resp.text[:200]}")
            logger.info("Email sent via resend to=%s subject=%s", target, subject)
            return {"success": True, "provider": "resend", "target": target}
        raise ValueError(f"Unsupported EMAIL_PROVIDER: {provider}")

    def try_send_email(self, email: str, subject: str, html: str) -> bool:
        """Send where a failed email must not fail the request."""
        try:
            self.send_email(email, subject, html)
            return True
        except (ValueError, httpx.HTTPError) as exc:
            logger.warning("Email to %s failed: %s", email, exc)
            return False


notification_service = NotificationService()
