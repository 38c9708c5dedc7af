"""Channels module - outbound delivery integrations."""

from .email import (
    EmailClient, EmailDeliveryError, ResendEmailClient,
    create_email_client, get_email_client,
)

__all__ = [
    'EmailClient', 'EmailDeliveryError', 'ResendEmailClient',
    'create_email_client', 'get_email_client',
]
