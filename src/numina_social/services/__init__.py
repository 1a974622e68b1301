"""Service layer for the messaging backend."""

from numina_social.services.messaging import MessagingService

__all__ = ["MessagingService"]
