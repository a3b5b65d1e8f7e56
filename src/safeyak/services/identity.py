"""Pseudonymous identity handling.

An ``author_hash`` is an opaque token minted once per client and presented
explicitly with every request. Nothing verifies who presents it.
"""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path

from sqlalchemy.orm import Session

from safeyak.core.errors import ValidationError
from safeyak.db.statements import insert_ignore
from safeyak.db.time import utcnow
from safeyak.models import Author

logger = logging.getLogger(__name__)

_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_\-]{8,128}$")


def generate_author_hash() -> str:
    """Return a fresh random author token (UUID4 text form)."""
    return str(uuid.uuid4())


def validate_author_hash(author_hash: str | None) -> str:
    """Return the stripped token or raise if it is missing or malformed."""
    token = (author_hash or "").strip()
    if not token:
        raise ValidationError("Missing required fields: author_hash")
    if not _TOKEN_PATTERN.match(token):
        raise ValidationError("Malformed author_hash")
    return token


class IdentityProvider:
    """Issues author tokens and registers them with the store.

    ``storage_path`` lets a client (a CLI, a bot) keep its token on disk the
    way a browser keeps it in local storage; the token is created on first
    use and reused afterwards.
    """

    def __init__(self, storage_path: Path | str | None = None) -> None:
        self.storage_path = Path(storage_path) if storage_path is not None else None

    def issue(self) -> str:
        """Mint a new token without persisting it anywhere."""
        return generate_author_hash()

    def load_or_create(self) -> str:
        """Return the locally stored token, creating it on first call."""
        if self.storage_path is None:
            raise ValueError("IdentityProvider has no storage_path")
        if self.storage_path.exists():
            stored = self.storage_path.read_text(encoding="utf-8").strip()
            if stored:
                return validate_author_hash(stored)

        token = self.issue()
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        self.storage_path.write_text(token, encoding="utf-8")
        logger.info("Created new pseudonymous identity at %s", self.storage_path)
        return token

    @staticmethod
    def ensure_author(db: Session, author_hash: str) -> Author:
        """Register the token on first interaction and return its row."""
        token = validate_author_hash(author_hash)
        insert_ignore(
            db,
            Author,
            {"author_hash": token, "created_at": utcnow(), "last_post_at": None},
        )
        author = db.get(Author, token)
        if author is None:  # pragma: no cover - insert_ignore guarantees the row
            raise RuntimeError(f"Author {token} vanished after insert")
        return author

