"""Webhooks library — signed, retried webhook delivery."""

from session_export.core.security import verify_webhook_signature
from session_export.lib.webhooks.dispatcher import (
    JOB_HEADER,
    SIGNATURE_HEADER,
    TENANT_HEADER,
    TIMESTAMP_HEADER,
    WebhookDispatcher,
)
from session_export.lib.webhooks.secrets import SecretProvider, StaticSecretProvider, resolve_secret
from session_export.lib.webhooks.types import DeliveryResult

__all__ = [
    "JOB_HEADER",
    "SIGNATURE_HEADER",
    "TENANT_HEADER",
    "TIMESTAMP_HEADER",
    "DeliveryResult",
    "SecretProvider",
    "StaticSecretProvider",
    "WebhookDispatcher",
    "resolve_secret",
    "verify_webhook_signature",
]
