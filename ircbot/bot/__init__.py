"""Bot façade and registration collaborator."""

from .core import RESERVED_TAGS, Bot  # noqa: F401
from .identity import IDENTITY_TAG, IdentityRegistrar  # noqa: F401

__all__ = ["Bot", "IdentityRegistrar", "IDENTITY_TAG", "RESERVED_TAGS"]
