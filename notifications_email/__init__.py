"""Email delivery for notification events.

Resolves notification recipients against a directory (catalog) service and
sends one email per resolved address through an SMTP, AWS SES or sendmail
transport.
"""

__version__ = "0.1.0"
