"""
Transactional e-mail through the Resend REST API

Templates:
- verification e-mail (link to {DOMAIN}/users/confirmation/{token})
- OTP login code
- contact form forwarding to the site inbox
"""
import html
import logging
from typing import Dict, Optional

import httpx

from config.settings import Settings

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"

_WRAPPER = (
    '<div style="font-family: Arial, sans-serif; background-color: #ffffff; padding: 24px;">'
    '<h1 style="color: #e91e63;">Feetflight</h1>{content}</div>'
)


def render_verify_email(user_name: str, token: str, domain: str, role: str) -> str:
    url = f"{domain.rstrip('/')}/users/confirmation/{token}"
    return _WRAPPER.format(content=(
        f"<h3>Welcome {html.escape(user_name)}</h3>"
        f"<p>this is your last step to start your journey of {html.escape(role)} "
        "cool attractive looking feet</p>"
        "<p>please verify your email and proceed</p>"
        f'<a href="{html.escape(url, quote=True)}" '
        'style="background-color: #e91e63; color: #ffffff; padding: 12px 24px; '
        'text-decoration: none; border-radius: 4px;">Verify</a>'
    ))


def render_otp_email(otp: str) -> str:
    return _WRAPPER.format(content=(
        "<h3>Your verification code</h3>"
        f'<p style="font-size: 32px; letter-spacing: 8px;"><strong>{html.escape(otp)}</strong></p>'
        "<p>This code expires in 2 minutes.</p>"
    ))


def render_contact_email(form: Dict) -> str:
    fields = "".join(
        f"<p>{label}: {html.escape(str(form.get(key) or ''))}</p>"
        for key, label in (("name", "name"), ("email", "email"), ("number", "number"), ("message", "message"))
    )
    return _WRAPPER.format(content=(
        "<h3>Welcome back</h3>"
        "<p>Someone contacted you through the contact form</p>"
        + fields
    ))


class Mailer:
    """Sends HTML e-mail via Resend"""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.api_key = settings.resend_api_key
        self.from_email = settings.resend_from_email
        self.contact_email = settings.contact_email
        self.domain = settings.domain
        self._client = client

    async def send(self, to: str, subject: str, html_body: str) -> Dict:
        """
        Send one e-mail.

        Returns:
            Resend response ({'id': ...})

        Raises:
            RuntimeError: Resend is not configured
            httpx.HTTPStatusError: Resend rejected the message
        """
        if not self.api_key:
            raise RuntimeError("RESEND_API_KEY is not configured")

        payload = {
            "from": self.from_email,
            "to": [to],
            "subject": subject,
            "html": html_body,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        if self._client is not None:
            response = await self._client.post(RESEND_API_URL, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(RESEND_API_URL, json=payload, headers=headers)

        response.raise_for_status()
        logger.info(f"📧 Sent '{subject}' to {to}")
        return response.json()

    async def send_verification_email(self, to: str, user_name: str, token: str, role: str) -> Dict:
        return await self.send(
            to,
            "Verifying Email",
            render_verify_email(user_name, token, self.domain, role),
        )

    async def send_otp_email(self, to: str, otp: str) -> Dict:
        return await self.send(to, "OTP Verification Email", render_otp_email(otp))

    async def send_contact_email(self, form: Dict) -> Dict:
        if not self.contact_email:
            raise RuntimeError("CONTACT_EMAIL is not configured")
        return await self.send(self.contact_email, "Contact Form Submission", render_contact_email(form))
