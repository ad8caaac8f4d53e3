"""
Account-related email templates.
"""

from libs.common.emails.core import send_email


async def send_password_reset_email(
    to_email: str, username: str, reset_link: str, expires_minutes: int
) -> bool:
    """
    Send the password reset link requested from the login page.
    """
    subject = "Reset your VendorVault password"

    body = f"""Hi {username},

We received a request to reset your VendorVault password.
Open the link below to choose a new one:

{reset_link}

The link expires in {expires_minutes} minutes. If you did not ask for a
reset you can ignore this email.

- The VendorVault Team
"""

    html_body = f"""<p>Hi {username},</p>
<p>We received a request to reset your VendorVault password.</p>
<p><a href="{reset_link}">Choose a new password</a></p>
<p>The link expires in {expires_minutes} minutes. If you did not ask for a reset you can ignore this email.</p>
<p>- The VendorVault Team</p>
"""

    return await send_email(to_email, subject, body, html_body=html_body)
