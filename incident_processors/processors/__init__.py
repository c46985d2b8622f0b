"""Message processors."""

from .base import BaseProcessor
from .email import EmailProcessor
from .incorg import IncOrgProcessor

__all__ = ["BaseProcessor", "EmailProcessor", "IncOrgProcessor"]
