"""Import all models so Base.metadata sees every table."""
from mesa_chat.infrastructure.db.models.credential import CredentialModel
from mesa_chat.infrastructure.db.models.message import MessageModel

__all__ = [
    "CredentialModel",
    "MessageModel",
]
