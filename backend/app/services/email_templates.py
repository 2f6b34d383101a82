"""
HTML email bodies
"""
from html import escape
from typing import Optional, Tuple

from app.core.config import settings


def _shell(title: str, body: str) -> str:
    firm = escape(settings.FIRM_NAME)
    return f"""<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; background:#f5f5f5; padding:24px;">
    <div style="max-width:600px; margin:0 auto; background:#ffffff; padding:24px; border-radius:6px;">
      <h2 style="color:#1f3a5f; margin-top:0;">{escape(title)}</h2>
      {body}
      <hr style="border:none; border-top:1px solid #e5e5e5; margin:24px 0;" />
      <p style="color:#888888; font-size:12px;">{firm}</p>
    </div>
  </body>
</html>"""


def welcome_email(name: str, email: str, password: str, client_number: Optional[str] = None) -> Tuple[str, str]:
    number_line = f"<p>Your client number: <strong>{escape(client_number)}</strong></p>" if client_number else ""
    body = f"""
      <p>Dear {escape(name)},</p>
      <p>An account has been created for you. You can sign in with:</p>
      <p>Email: <strong>{escape(email)}</strong><br/>Password: <strong>{escape(password)}</strong></p>
      {number_line}
      <p>Please change your password after your first login.</p>
      <p><a href="{escape(settings.FRONTEND_URL)}/login">Sign in</a></p>"""
    return f"Welcome to {settings.FIRM_NAME}", _shell("Welcome", body)


def password_reset_link_email(name: str, token: str) -> Tuple[str, str]:
    link = f"{settings.FRONTEND_URL}/reset-password?token={token}"
    body = f"""
      <p>Dear {escape(name)},</p>
      <p>We received a request to reset your password. The link below is valid for
      {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes.</p>
      <p><a href="{escape(link)}">Reset password</a></p>
      <p>If you did not request this, you can ignore this email.</p>"""
    return "Password reset request", _shell("Reset your password", body)


def new_password_email(name: str, password: str) -> Tuple[str, str]:
    body = f"""
      <p>Dear {escape(name)},</p>
      <p>Your password reset request was approved. Your new password is:</p>
      <p><strong>{escape(password)}</strong></p>
      <p>Please change it after signing in.</p>"""
    return "Your new password", _shell("Password reset approved", body)


def case_update_email(name: str, case_number: str, update: str) -> Tuple[str, str]:
    body = f"""
      <p>Dear {escape(name)},</p>
      <p>There is an update on your case <strong>{escape(case_number)}</strong>:</p>
      <p>{escape(update)}</p>"""
    return f"Case update: {case_number}", _shell("Case update", body)
