"""
VendorVault email package.

Modules:
- core: SMTP ``send_email``
- accounts: account templates (password reset)
"""
