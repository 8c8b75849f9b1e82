"""
Translation between persisted report documents and the Report model.

Persisted documents use a lowercase status/priority vocabulary and may
carry list fields as a bare string or null. Everything leaving this module
is canonical: enumerated status/priority values and real lists.
"""

import logging
import secrets
import string
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Mapping, Optional

from config import get_settings
from schemas import Report, ReportPriority, ReportStatus, ReportUpdate

logger = logging.getLogger(__name__)

STATUS_FROM_ROW: Dict[str, ReportStatus] = {
    'open': 'Open',
    'in_progress': 'Under Investigation',
    'investigating': 'Under Investigation',
    'closed': 'Solved',
    'resolved': 'Solved',
    # domain spellings, so already-canonical input survives normalization
    'under investigation': 'Under Investigation',
    'underinvestigation': 'Under Investigation',
    'solved': 'Solved',
}

STATUS_TO_ROW: Dict[str, str] = {
    'Open': 'open',
    'Under Investigation': 'investigating',
    'Solved': 'resolved',
}

PRIORITY_FROM_ROW: Dict[str, ReportPriority] = {
    'low': 'Low',
    'medium': 'Medium',
    'high': 'High',
    'critical': 'Critical',
}

PRIORITY_TO_ROW: Dict[str, str] = {v: k for k, v in PRIORITY_FROM_ROW.items()}

REPORT_COLUMNS = (
    'id', 'title', 'type', 'status', 'priority', 'location', 'date', 'time',
    'officer', 'description', 'evidence', 'suspects', 'victims', 'damage',
    'notes', 'reporter_id', 'created_at', 'updated_at',
)

UPDATE_COLUMNS = ('report_id', 'comment', 'created_at')

_ID_ALPHABET = string.ascii_uppercase + string.digits


# ---------- Clock ----------

def _tz(tz: Optional[tzinfo]) -> tzinfo:
    return tz if tz is not None else get_settings().tz


def now_local(tz: Optional[tzinfo] = None) -> datetime:
    return datetime.now(_tz(tz))


def format_date(moment: datetime) -> str:
    return moment.strftime('%Y-%m-%d')


def format_time(moment: datetime) -> str:
    return moment.strftime('%H:%M')


def history_entry(note: str, now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> ReportUpdate:
    """Build one history entry stamped with the local date and time."""
    moment = now if now is not None else now_local(tz)
    return ReportUpdate(date=format_date(moment), time=format_time(moment), note=note)


def generate_report_id(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> str:
    moment = now if now is not None else now_local(tz)
    suffix = ''.join(secrets.choice(_ID_ALPHABET) for _ in range(4))
    return f"CR-{moment.year}-{moment.month:02d}-{suffix}"


# ---------- Vocabulary ----------

def normalize_status(raw: Any) -> ReportStatus:
    if not isinstance(raw, str):
        return 'Open'
    return STATUS_FROM_ROW.get(raw.strip().lower(), 'Open')


def normalize_priority(raw: Any) -> ReportPriority:
    if not isinstance(raw, str):
        return 'Medium'
    return PRIORITY_FROM_ROW.get(raw.strip().lower(), 'Medium')


def status_to_row(status: Any) -> str:
    return STATUS_TO_ROW.get(status, 'open')


def priority_to_row(priority: Any) -> str:
    return PRIORITY_TO_ROW.get(priority, 'medium')


def as_string_list(value: Any) -> List[str]:
    """Normalize null, a bare string or a sequence into a list of non-empty strings."""
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item]
    return [str(value)]


# ---------- Reports ----------

def _or_default(value: Any, default: Any) -> Any:
    return default if value is None else value


def row_to_report(
    row: Mapping[str, Any],
    updates: Optional[Iterable[ReportUpdate]] = None,
    tz: Optional[tzinfo] = None,
) -> Report:
    now = now_local(tz)
    return Report(
        id=str(row['id']),
        title=_or_default(row.get('title'), 'Untitled Report'),
        type=_or_default(row.get('type'), 'Incident'),
        status=normalize_status(row.get('status')),
        priority=normalize_priority(row.get('priority')),
        location=_or_default(row.get('location'), 'Unknown'),
        date=_or_default(row.get('date'), format_date(now)),
        time=_or_default(row.get('time'), format_time(now)),
        officer=_or_default(row.get('officer'), 'Unassigned'),
        description=_or_default(row.get('description'), 'No description provided.'),
        evidence=as_string_list(row.get('evidence')),
        suspects=as_string_list(row.get('suspects')),
        victims=as_string_list(row.get('victims')),
        damage=_or_default(row.get('damage'), 'N/A'),
        notes=_or_default(row.get('notes'), ''),
        updates=list(updates or []),
        reporterId=row.get('reporter_id'),
    )


def report_to_row(report: Report) -> Dict[str, Any]:
    """Full persisted document for a report. History is stored separately."""
    return {
        'id': report.id,
        'title': report.title,
        'type': report.type,
        'status': status_to_row(report.status),
        'priority': priority_to_row(report.priority),
        'location': report.location,
        'location_name': report.location,
        'date': report.date,
        'time': report.time,
        'officer': report.officer,
        'description': report.description,
        'evidence': as_string_list(report.evidence),
        'suspects': as_string_list(report.suspects),
        'victims': as_string_list(report.victims),
        'damage': report.damage,
        'notes': report.notes,
        'report_type': 'crime',
        'reporter_id': report.reporterId,
    }


_PASSTHROUGH_FIELDS = ('title', 'type', 'date', 'time', 'officer', 'description', 'damage', 'notes')
_LIST_FIELDS = ('evidence', 'suspects', 'victims')
# null is meaningful for these; for any other field it leaves the value as is
NULLABLE_FIELDS = _LIST_FIELDS + ('reporterId',)


def partial_report_to_row(partial: Mapping[str, Any]) -> Dict[str, Any]:
    """Serialize only the keys present in `partial`.

    A key that is absent must stay absent: emitting it as null would wipe
    the stored field. A null scalar is treated as absent; null list fields
    and reporterId are cleared.
    """
    present = {k: v for k, v in partial.items() if v is not None or k in NULLABLE_FIELDS}
    payload: Dict[str, Any] = {}
    for key in _PASSTHROUGH_FIELDS:
        if key in present:
            payload[key] = present[key]
    if 'status' in present:
        payload['status'] = status_to_row(normalize_status(present['status']))
    if 'priority' in present:
        payload['priority'] = priority_to_row(normalize_priority(present['priority']))
    if 'location' in present:
        payload['location'] = present['location']
        payload['location_name'] = present['location']
    for key in _LIST_FIELDS:
        if key in present:
            payload[key] = as_string_list(present[key])
    if 'reporterId' in present:
        payload['reporter_id'] = present['reporterId'] or None
    return payload


# ---------- History ----------

def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        moment = value
    else:
        text = str(value)
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def decode_update_row(row: Mapping[str, Any], tz: Optional[tzinfo] = None) -> ReportUpdate:
    created = _parse_timestamp(row['created_at']).astimezone(_tz(tz))
    return ReportUpdate(
        note=row.get('comment') or 'Update',
        date=format_date(created),
        time=format_time(created),
    )


def group_updates_by_report_id(
    rows: Iterable[Mapping[str, Any]],
    tz: Optional[tzinfo] = None,
) -> Dict[str, List[ReportUpdate]]:
    """Group history rows by report id, keeping their input order."""
    grouped: Dict[str, List[ReportUpdate]] = {}
    for row in rows:
        try:
            update = decode_update_row(row, tz)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed history row for report {row.get('report_id')}: {e}")
            continue
        grouped.setdefault(str(row.get('report_id')), []).append(update)
    return grouped


def history_entry_to_row(
    report_id: str,
    entry: ReportUpdate,
    tz: Optional[tzinfo] = None,
    created_at: Optional[datetime] = None,
    sequence: int = 0,
) -> Dict[str, Any]:
    """History row for `entry`.

    `created_at` is the actual write time of a live entry. Without it the
    timestamp is rebuilt from the entry's date and minute, shifted by
    `sequence` seconds so entries of one report keep their order.
    """
    if created_at is None:
        try:
            local = datetime.strptime(f"{entry.date} {entry.time}", '%Y-%m-%d %H:%M').replace(tzinfo=_tz(tz))
        except ValueError:
            local = now_local(tz)
        created_at = local + timedelta(seconds=sequence)
    elif created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return {
        'report_id': report_id,
        'comment': entry.note,
        'created_at': created_at.astimezone(timezone.utc),
    }
