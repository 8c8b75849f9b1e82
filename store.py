"""
In-process snapshot of all reports.

Every mutating method is synchronous, so a mutation is never observed
half-applied by another request. Newly created reports are prepended.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from hub import BroadcastHub
from mapper import NULLABLE_FIELDS, as_string_list, history_entry, normalize_priority, normalize_status
from schemas import DeletedEvent, InitEvent, Report, ReportEvent, ReportUpdate
import seed

logger = logging.getLogger(__name__)

_LIST_FIELDS = ('evidence', 'suspects', 'victims')


class SnapshotStore:
    def __init__(self, hub: BroadcastHub):
        self.hub = hub
        self._reports: List[Report] = []

    def __len__(self) -> int:
        return len(self._reports)

    def all(self) -> List[Report]:
        return list(self._reports)

    def get(self, report_id: str) -> Optional[Report]:
        index = self._index_of(report_id)
        return None if index is None else self._reports[index]

    def _index_of(self, report_id: str) -> Optional[int]:
        for i, report in enumerate(self._reports):
            if report.id == report_id:
                return i
        return None

    # ---------- Bulk ----------

    def replace(self, reports: List[Report]) -> None:
        self._reports = list(reports)

    def set_initial_if_empty(self, reports: List[Report]) -> bool:
        if self._reports:
            return False
        self._reports = list(reports)
        self.hub.broadcast(InitEvent(reports=self.all()))
        return True

    def seed_if_empty(self, generate: Callable[[], List[Report]] = seed.generate_placeholder_reports) -> bool:
        """Install placeholder reports when the snapshot is empty."""
        if self._reports:
            return False
        reports = generate()
        logger.info(f"Snapshot empty, installing {len(reports)} placeholder reports")
        return self.set_initial_if_empty(reports)

    # ---------- Single report ----------

    def upsert(self, report: Report, broadcast_kind: Optional[str] = None) -> Report:
        index = self._index_of(report.id)
        if index is None:
            self._reports.insert(0, report)
            self.hub.broadcast(ReportEvent(type=broadcast_kind or 'created', report=report))
        else:
            self._reports[index] = report
            self.hub.broadcast(ReportEvent(type=broadcast_kind or 'updated', report=report))
        return report

    def update_status(self, report_id: str, status: str, note: Optional[str] = None) -> Optional[Report]:
        index = self._index_of(report_id)
        if index is None:
            return None
        current = self._reports[index]
        status = normalize_status(status)
        updated = current.model_copy(update={
            'status': status,
            'updates': [*current.updates, history_entry(note or f"Status changed to {status}")],
        })
        self._reports[index] = updated
        self.hub.broadcast(ReportEvent(type='updated', report=updated))
        return updated

    def update_fields(
        self,
        report_id: str,
        partial: Mapping[str, Any],
        note: Optional[str] = None,
    ) -> Optional[Report]:
        """Shallow-merge `partial` onto a report and record one history entry.

        A non-empty `updates` list in `partial` replaces the history instead.
        """
        index = self._index_of(report_id)
        if index is None:
            return None
        current = self._reports[index]

        changes: Dict[str, Any] = {
            k: v for k, v in partial.items()
            if k not in ('id', 'updates') and (v is not None or k in NULLABLE_FIELDS)
        }
        if 'status' in changes:
            changes['status'] = normalize_status(changes['status'])
        if 'priority' in changes:
            changes['priority'] = normalize_priority(changes['priority'])
        for key in _LIST_FIELDS:
            if key in changes:
                changes[key] = as_string_list(changes[key])

        replacement = partial.get('updates')
        if replacement:
            changes['updates'] = [ReportUpdate.model_validate(u) for u in replacement]
        else:
            changes['updates'] = [*current.updates, history_entry(note or 'Report updated')]

        updated = Report.model_validate({**current.model_dump(), **changes})
        self._reports[index] = updated
        self.hub.broadcast(ReportEvent(type='updated', report=updated))
        return updated

    def remove(self, report_id: str) -> bool:
        index = self._index_of(report_id)
        if index is None:
            return False
        del self._reports[index]
        self.hub.broadcast(DeletedEvent(id=report_id))
        return True
