"""
Report persistence on top of the remote store.

Reports and their history live in separate collections, joined here by
report id. Methods block and raise RemoteStoreError; deciding what to do
about a failure is the caller's job, except for history writes that
follow a successful insert, which are best effort.
"""

import logging
import uuid
from datetime import datetime, tzinfo
from typing import Dict, List, Mapping, Any, Optional

from database import RemoteStore
from errors import RemoteStoreError
from mapper import (
    REPORT_COLUMNS,
    UPDATE_COLUMNS,
    group_updates_by_report_id,
    history_entry_to_row,
    partial_report_to_row,
    report_to_row,
    row_to_report,
)
from schemas import Report, ReportUpdate, UserProfile

logger = logging.getLogger(__name__)

REPORTS = "report"
REPORT_UPDATES = "report_update"
USERS = "user"


class ReportRepository:
    def __init__(self, remote: RemoteStore, tz: Optional[tzinfo] = None):
        self.remote = remote
        self.tz = tz

    # ---------- Reads ----------

    def fetch_history(self, report_ids: List[str]) -> Dict[str, List[ReportUpdate]]:
        if not report_ids:
            return {}
        # _id breaks created_at ties in insertion order
        rows = self.remote.select(
            REPORT_UPDATES,
            UPDATE_COLUMNS,
            filters={"report_id": report_ids},
            order=[("created_at", True), ("_id", True)],
        )
        return group_updates_by_report_id(rows, self.tz)

    def fetch_reports(self) -> List[Report]:
        """All reports, newest first, each with its history attached.

        If only the history lookup fails, reports are returned without it.
        """
        rows = self.remote.select(REPORTS, REPORT_COLUMNS, order=[("created_at", False), ("_id", False)])
        if not rows:
            logger.info("No reports found in database")
            return []
        logger.info(f"Fetched {len(rows)} reports from database")

        report_ids = [str(row["id"]) for row in rows]
        try:
            history = self.fetch_history(report_ids)
        except RemoteStoreError as e:
            logger.warning(f"Unable to hydrate report history, continuing with report rows only: {e}")
            history = {}

        return [row_to_report(row, history.get(str(row["id"])), self.tz) for row in rows]

    def fetch_report(self, report_id: str) -> Optional[Report]:
        rows = self.remote.select(REPORTS, REPORT_COLUMNS, filters={"id": report_id})
        if not rows:
            return None
        history = self.fetch_history([report_id])
        return row_to_report(rows[0], history.get(report_id), self.tz)

    # ---------- Writes ----------

    def insert_report(self, report: Report, written_at: Optional[datetime] = None) -> Report:
        """Insert a report and its history entries.

        `written_at` stamps the history of a report submitted just now;
        without it (seeded reports) stamps are rebuilt from each entry.
        The report row is authoritative; a failed history write is logged
        and the report is still returned.
        """
        row = self.remote.insert(REPORTS, report_to_row(report))
        logger.info(f"Inserted report {report.id}")

        for sequence, entry in enumerate(report.updates):
            try:
                self.append_history(report.id, entry, created_at=written_at, sequence=sequence)
            except RemoteStoreError as e:
                logger.error(f"Error inserting history entry for {report.id} (non-fatal): {e}")
                break

        return row_to_report(row, report.updates, self.tz)

    def update_report(self, report_id: str, partial: Mapping[str, Any]) -> Optional[Report]:
        """Apply a partial update. Returns None when no such report exists.

        The returned report carries no history; callers attach it.
        """
        payload = partial_report_to_row(partial)
        if not payload:
            rows = self.remote.select(REPORTS, REPORT_COLUMNS, filters={"id": report_id})
            return row_to_report(rows[0], tz=self.tz) if rows else None

        row = self.remote.update(REPORTS, payload, filters={"id": report_id})
        return row_to_report(row, tz=self.tz) if row else None

    def append_history(
        self,
        report_id: str,
        entry: ReportUpdate,
        created_at: Optional[datetime] = None,
        sequence: int = 0,
    ) -> None:
        row = history_entry_to_row(report_id, entry, self.tz, created_at=created_at, sequence=sequence)
        self.remote.insert(REPORT_UPDATES, row)

    def delete_report(self, report_id: str) -> bool:
        deleted = self.remote.delete(REPORTS, filters={"id": report_id})
        return deleted is not None

    # ---------- Profiles ----------

    def upsert_profile(self, profile: UserProfile) -> str:
        """Create or refresh a user profile row keyed by email; returns its id."""
        email = str(profile.email).lower()
        fields = {**profile.model_dump(), "email": email}
        existing = self.remote.select(USERS, ["id", "email"], filters={"email": email})
        if existing:
            user_id = str(existing[0]["id"])
            self.remote.update(USERS, fields, filters={"id": user_id})
            return user_id
        user_id = str(uuid.uuid4())
        self.remote.insert(USERS, {"id": user_id, **fields})
        return user_id
