from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime

from ..db.user_store import UserStore
from ..models.candidate_user import CandidateUser
from ..models.persisted_user import PersistedUser
from .hashing import PasswordHasher
from .progress import ProgressTracker

"""Import coordinator: validated CSV rows -> user store.

Only rows without validation errors are considered. Each one is checked
against the store for an existing username or email, in file order, and the
survivors are hashed and written as one batch. Duplicates are skipped
silently; they only lower the returned count.
"""

logger = logging.getLogger(__name__)


class UserImportService:
    """Persists candidate users and exposes the store lookups callers need.

    Args:
        store: UserStore implementation (PostgresUserStore in production)
        hasher: PasswordHasher applied to every accepted password
        dedupe_within_batch: also skip rows whose username or email was
            already accepted earlier in the same call
        show_progress: display a tqdm bar while checking rows (TTY only)
    """

    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        *,
        dedupe_within_batch: bool = True,
        show_progress: bool = True,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.dedupe_within_batch = dedupe_within_batch
        self.show_progress = show_progress

    def import_users(self, rows: Sequence[CandidateUser]) -> int:
        """Save the valid, non-duplicate rows and return how many were saved.

        Raises:
            StoreError: the batch insert failed (nothing was saved)
        """
        if not rows:
            return 0

        valid_rows = [r for r in rows if r.is_valid]
        accepted: list[PersistedUser] = []
        seen_usernames: set[str] = set()
        seen_emails: set[str] = set()
        skipped = 0

        with ProgressTracker(len(valid_rows), enabled=self.show_progress) as progress:
            for row in valid_rows:
                progress.advance()
                reason = self._duplicate_reason(row, seen_usernames, seen_emails)
                if reason is not None:
                    skipped += 1
                    logger.info(f"row {row.row_number}: skipped, {reason}")
                    progress.set_postfix(accepted=len(accepted), skipped=skipped)
                    continue

                seen_usernames.add(row.username)
                seen_emails.add(row.email)
                accepted.append(
                    PersistedUser(
                        full_name=row.full_name,
                        username=row.username,
                        email=row.email,
                        password=self.hasher.hash(row.password),
                        created_at=datetime.now(UTC),
                    )
                )
                progress.set_postfix(accepted=len(accepted), skipped=skipped)

        if accepted:
            self.store.insert_batch(accepted)

        logger.debug(
            f"import rows={len(rows)} valid={len(valid_rows)} saved={len(accepted)} skipped={skipped}"
        )
        return len(accepted)

    def _duplicate_reason(
        self, row: CandidateUser, seen_usernames: set[str], seen_emails: set[str]
    ) -> str | None:
        username_taken = self.username_exists(row.username)
        email_taken = self.email_exists(row.email)
        if username_taken or email_taken:
            taken = [n for n, hit in (("username", username_taken), ("email", email_taken)) if hit]
            return f"{' and '.join(taken)} already exists"
        if self.dedupe_within_batch:
            if row.username in seen_usernames:
                return "username repeated in this file"
            if row.email in seen_emails:
                return "email repeated in this file"
        return None

    def username_exists(self, username: str) -> bool:
        return self.store.exists("username", username)

    def email_exists(self, email: str) -> bool:
        return self.store.exists("email", email)

    def list_all_users(self) -> list[PersistedUser]:
        """All stored users, oldest first."""
        return self.store.list_all_ordered()
