"""
Report lifecycle: reconciliation between the remote store and the
in-process snapshot, plus the create/update/delete flows.

Read policy is remote-first with snapshot fallback. A successful fetch
(even an empty one) replaces the snapshot and is served as `database`; a
failed fetch serves the current snapshot as `memory`. Reads never seed
the remote store; that only happens through seed_remote().

Remote calls run in a worker thread. The snapshot and hub are only
touched on the event loop thread, between awaits.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from config import Settings, get_settings
from database import RemoteStore
from errors import RemoteStoreError
from evidence import encode_resident_submission
from hub import BroadcastHub
from mapper import (
    NULLABLE_FIELDS,
    as_string_list,
    generate_report_id,
    history_entry,
    normalize_priority,
    normalize_status,
    now_local,
    format_date,
    format_time,
)
from repository import ReportRepository
from schemas import Report, ReportCreate, ReportSource, ReportUpdate
from seed import DEFAULT_RESIDENT_REPORTER_ID, MOCK_PROFILES, MOCK_RESIDENT, generate_mock_reports
from store import SnapshotStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ReadResult:
    reports: List[Report]
    source: ReportSource
    error: Optional[str] = None


@dataclass
class SeedResult:
    inserted: int = 0
    failed: int = 0
    profiles_synced: int = 0
    reporter_id: str = DEFAULT_RESIDENT_REPORTER_ID
    failures: List[str] = field(default_factory=list)


class ReportService:
    def __init__(self, remote: RemoteStore, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.tz = self.settings.tz
        self.hub = BroadcastHub(max_subscribers=self.settings.max_subscribers)
        self.store = SnapshotStore(self.hub)
        self.repository = ReportRepository(remote, self.tz)

    async def _remote(self, fn, *args):
        return await asyncio.to_thread(fn, *args)

    def close(self) -> None:
        self.hub.close_all()

    # ---------- Reads ----------

    async def load_reports(self, reporter_id: Optional[str] = None) -> ReadResult:
        try:
            reports = await self._remote(self.repository.fetch_reports)
        except RemoteStoreError as e:
            logger.error(f"Failed to load reports from database, serving snapshot: {e}")
            reports, source = self.store.all(), 'memory'
        else:
            self.store.replace(reports)
            source = 'database'

        if reporter_id:
            reports = [r for r in reports if r.reporterId == reporter_id]
        return ReadResult(reports=reports, source=source)

    async def hydrate_for_stream(self) -> List[Report]:
        """Refresh the snapshot before a stream starts.

        When it is still empty afterwards, placeholder reports are installed
        if enabled.
        """
        await self.load_reports()
        if not len(self.store) and self.settings.placeholder_seed:
            self.store.seed_if_empty()
        return self.store.all()

    async def get_report(self, report_id: str) -> Optional[Report]:
        report = self.store.get(report_id)
        if report is not None:
            return report
        try:
            return await self._remote(self.repository.fetch_report, report_id)
        except RemoteStoreError as e:
            logger.error(f"Failed to fetch report {report_id}: {e}")
            return None

    async def describe_backend(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "backend": "running",
            "database": "disconnected",
            "collections": [],
            "reports_in_memory": len(self.store),
            "subscribers": len(self.hub),
        }
        try:
            names = await self._remote(self.repository.remote.collection_names)
            info["database"] = "connected"
            info["collections"] = names[:10]
        except RemoteStoreError as e:
            info["database"] = f"error: {str(e)[:80]}"
        return info

    # ---------- Create ----------

    def build_new_report(self, payload: ReportCreate) -> Report:
        now = now_local(self.tz)
        evidence = as_string_list(payload.evidence)
        notes = payload.notes if payload.notes is not None else 'Submitted via portal.'
        if payload.attachments or payload.reporter:
            media, notes = encode_resident_submission(payload.attachments, payload.reporter, payload.message)
            evidence.extend(media)

        return Report(
            id=payload.id or generate_report_id(now=now),
            title=payload.title or 'Untitled Report',
            type=payload.type or 'Incident',
            status='Open',
            priority=normalize_priority(payload.priority),
            location=payload.location or 'Unknown',
            date=format_date(now),
            time=format_time(now),
            officer=payload.officer or 'Unassigned',
            description=payload.description or 'No description provided.',
            evidence=evidence,
            suspects=as_string_list(payload.suspects),
            victims=as_string_list(payload.victims),
            damage=payload.damage or 'N/A',
            notes=notes,
            updates=[history_entry('Report submitted', now=now)],
            reporterId=payload.reporterId or None,
        )

    async def create_report(self, payload: ReportCreate) -> Report:
        report = self.build_new_report(payload)
        logger.info(f"Creating report {report.id}")
        try:
            report = await self._remote(self.repository.insert_report, report, _utcnow())
        except RemoteStoreError as e:
            logger.error(f"Failed to persist report {report.id}, keeping it in memory only: {e}")
        return self.store.upsert(report, 'created')

    # ---------- Update ----------

    async def _persist_history(self, report_id: str, entry: ReportUpdate) -> None:
        try:
            await self._remote(self.repository.append_history, report_id, entry, _utcnow())
        except RemoteStoreError as e:
            logger.error(f"Failed to persist history entry for {report_id} (non-fatal): {e}")

    async def _known_history(self, report_id: str) -> List[ReportUpdate]:
        existing = self.store.get(report_id)
        if existing is not None:
            return list(existing.updates)
        try:
            history = await self._remote(self.repository.fetch_history, [report_id])
        except RemoteStoreError as e:
            logger.warning(f"History for {report_id} unavailable: {e}")
            return []
        return history.get(report_id, [])

    async def _try_remote_update(self, report_id: str, partial: Mapping[str, Any]) -> Optional[Report]:
        try:
            return await self._remote(self.repository.update_report, report_id, partial)
        except RemoteStoreError as e:
            logger.error(f"Failed to update report {report_id} in database: {e}")
            return None

    async def _commit_remote_update(
        self,
        updated: Report,
        entry: ReportUpdate,
        replacement: Optional[List[ReportUpdate]] = None,
    ) -> Report:
        if replacement:
            history = replacement
        else:
            history = [*await self._known_history(updated.id), entry]
            await self._persist_history(updated.id, entry)
        return self.store.upsert(updated.model_copy(update={'updates': history}), 'updated')

    async def update_report(
        self,
        report_id: str,
        partial: Mapping[str, Any],
        update_note: Optional[str] = None,
    ) -> Optional[Report]:
        """Apply a partial update and record one history entry.

        Returns None when neither the database nor the snapshot knows the id.
        """
        partial = {
            k: v for k, v in partial.items()
            if k not in ('id', 'updateNote') and (v is not None or k in NULLABLE_FIELDS)
        }
        if 'status' in partial:
            partial['status'] = normalize_status(partial['status'])
        if 'priority' in partial:
            partial['priority'] = normalize_priority(partial['priority'])

        replacement = None
        if partial.get('updates'):
            replacement = [ReportUpdate.model_validate(u) for u in partial['updates']]
        entry = history_entry(update_note or 'Report updated', tz=self.tz)

        updated = await self._try_remote_update(report_id, partial)
        if updated is not None:
            return await self._commit_remote_update(updated, entry, replacement)

        if self.store.get(report_id) is None:
            return None
        logger.info(f"Updating report {report_id} in memory only")
        return self.store.update_fields(report_id, partial, update_note)

    async def update_status(self, report_id: str, status: str, note: Optional[str] = None) -> Optional[Report]:
        status = normalize_status(status)
        note = note or f"Status changed to {status}"
        entry = history_entry(note, tz=self.tz)

        updated = await self._try_remote_update(report_id, {'status': status})
        if updated is not None:
            return await self._commit_remote_update(updated, entry)
        return self.store.update_status(report_id, status, note)

    # ---------- Delete ----------

    async def delete_report(self, report_id: str) -> bool:
        remote_deleted = False
        try:
            remote_deleted = await self._remote(self.repository.delete_report, report_id)
        except RemoteStoreError as e:
            logger.error(f"Failed to delete report {report_id} from database: {e}")
        local_removed = self.store.remove(report_id)
        return remote_deleted or local_removed

    # ---------- Seeding ----------

    async def seed_remote(self) -> SeedResult:
        """Write the mock profiles and mock reports to the remote store."""
        result = SeedResult()
        for profile in MOCK_PROFILES:
            try:
                user_id = await self._remote(self.repository.upsert_profile, profile)
            except RemoteStoreError as e:
                logger.error(f"Failed to sync profile {profile.email}: {e}")
                continue
            result.profiles_synced += 1
            if profile is MOCK_RESIDENT:
                result.reporter_id = user_id

        reports = generate_mock_reports(result.reporter_id)
        logger.info(f"Seeding {len(reports)} mock reports")
        for report in reports:
            try:
                await self._remote(self.repository.insert_report, report)
            except RemoteStoreError as e:
                logger.error(f"Failed to insert mock report {report.id} ({report.title}): {e}")
                result.failed += 1
                result.failures.append(report.id)
            else:
                result.inserted += 1

        logger.info(f"Seeding finished: {result.inserted} inserted, {result.failed} failed")
        return result
