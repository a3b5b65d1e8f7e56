# src/safeyak/schemas/identity.py
"""Identity Pydantic schemas."""

from pydantic import BaseModel


class IdentityResponse(BaseModel):
    """A freshly minted pseudonymous token."""

    author_hash: str
