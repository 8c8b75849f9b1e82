"""
Decoding of report evidence entries and resident notes metadata.

An evidence entry is an opaque string that may hold plain text, a data URL,
a link to an image or video, or a JSON "resident-media" payload. Each entry
is decoded once into one of the tagged types below. Nothing in this module
raises on malformed input; anything unrecognized is plain text.
"""

import json
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from schemas import (
    AttachmentIn,
    EvidenceBuckets,
    MediaAttachment,
    MediaType,
    ReporterInfo,
    ResidentMetadataResult,
)

RESIDENT_MEDIA_KIND = 'resident-media'
RESIDENT_METADATA_KIND = 'resident-metadata'
PAYLOAD_VERSION = 1

_IMAGE_URL = re.compile(r'\.(png|jpe?g|gif|webp|bmp|svg)(\?|#|$)')
_VIDEO_URL = re.compile(r'\.(mp4|mov|avi|webm|mkv)(\?|#|$)')


def _generate_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


# ---------- Tagged evidence ----------

@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class ImageRef:
    url: str
    name: str = 'Resident Image'

    def to_attachment(self) -> MediaAttachment:
        return MediaAttachment(id=_generate_id('image'), name=self.name, type='image', url=self.url)


@dataclass(frozen=True)
class VideoRef:
    url: str
    name: str = 'Resident Video'

    def to_attachment(self) -> MediaAttachment:
        return MediaAttachment(id=_generate_id('video'), name=self.name, type='video', url=self.url)


@dataclass(frozen=True)
class StructuredMediaPayload:
    id: str
    name: str
    type: MediaType
    data_url: str
    size: Optional[int] = None

    def to_attachment(self) -> MediaAttachment:
        return MediaAttachment(id=self.id, name=self.name, type=self.type, url=self.data_url, size=self.size)


EvidenceEntry = Union[PlainText, ImageRef, VideoRef, StructuredMediaPayload]


def _try_json(value: str) -> Any:
    try:
        return json.loads(value)
    except (ValueError, TypeError):
        return None


def _as_size(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    return None


def decode_evidence(entry: Any) -> EvidenceEntry:
    if not isinstance(entry, str):
        return PlainText(str(entry))

    parsed = _try_json(entry)
    if isinstance(parsed, dict) and parsed.get('kind') == RESIDENT_MEDIA_KIND and isinstance(parsed.get('dataUrl'), str):
        return StructuredMediaPayload(
            id=str(parsed.get('id') or _generate_id('attachment')),
            name=str(parsed.get('name') or 'Resident Attachment'),
            type='video' if parsed.get('type') == 'video' else 'image',
            data_url=parsed['dataUrl'],
            size=_as_size(parsed.get('size')),
        )

    lower = entry.strip().lower()
    if lower.startswith('data:image/'):
        return ImageRef(entry)
    if lower.startswith('data:video/'):
        return VideoRef(entry)

    if lower.startswith('http://') or lower.startswith('https://'):
        if _VIDEO_URL.search(lower):
            return VideoRef(entry, name='Resident Attachment')
        if _IMAGE_URL.search(lower):
            return ImageRef(entry, name='Resident Attachment')

    return PlainText(entry)


def parse_evidence(entries: Optional[Iterable[Any]]) -> EvidenceBuckets:
    """Split evidence entries into media attachments and plain text."""
    buckets = EvidenceBuckets()
    if not entries or isinstance(entries, str):
        entries = [entries] if entries else []

    for entry in entries:
        if not entry:
            continue
        decoded = decode_evidence(entry)
        if isinstance(decoded, PlainText):
            buckets.text.append(decoded.text)
        else:
            buckets.media.append(decoded.to_attachment())
    return buckets


# ---------- Resident metadata ----------

def parse_resident_metadata(notes: Optional[str]) -> ResidentMetadataResult:
    if not notes:
        return ResidentMetadataResult(isStructured=False, attachmentsCount=0, rawNotes='')

    parsed = _try_json(notes)
    if isinstance(parsed, dict) and parsed.get('kind') == RESIDENT_METADATA_KIND:
        reporter = parsed.get('reporter')
        attachments = parsed.get('attachments')
        message = parsed.get('message')
        if not isinstance(message, str):
            message = ''
        submitted_at = parsed.get('submittedAt')
        return ResidentMetadataResult(
            isStructured=True,
            reporter=_reporter_from(reporter),
            message=message,
            attachmentsCount=len(attachments) if isinstance(attachments, list) else 0,
            submittedAt=submitted_at if isinstance(submitted_at, str) else None,
            rawNotes=message,
        )

    return ResidentMetadataResult(isStructured=False, message=notes, attachmentsCount=0, rawNotes=notes)


def _reporter_from(value: Any) -> ReporterInfo:
    if not isinstance(value, dict):
        return ReporterInfo()
    fields = {}
    for key in ReporterInfo.model_fields:
        item = value.get(key)
        if item is not None:
            fields[key] = str(item)
    return ReporterInfo(**fields)


# ---------- Builders ----------

def create_media_payload(
    name: str,
    type: MediaType,
    data_url: str,
    size: Optional[int] = None,
    id: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        'kind': RESIDENT_MEDIA_KIND,
        'version': PAYLOAD_VERSION,
        'id': id or _generate_id('attachment'),
        'name': name,
        'type': type,
        'dataUrl': data_url,
        'size': size,
    }


def serialize_media_payload(payload: Dict[str, Any]) -> str:
    return json.dumps(payload)


def summarize_media_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'id': payload['id'],
        'name': payload['name'],
        'type': payload['type'],
        'size': payload.get('size'),
    }


def build_resident_metadata(
    reporter: Optional[ReporterInfo] = None,
    message: Optional[str] = None,
    attachments: Optional[List[Dict[str, Any]]] = None,
    submitted_at: Optional[str] = None,
) -> str:
    metadata = {
        'kind': RESIDENT_METADATA_KIND,
        'version': PAYLOAD_VERSION,
        'submittedAt': submitted_at or datetime.now(timezone.utc).isoformat(),
        'reporter': reporter.model_dump(exclude_none=True) if reporter else {},
        'message': message,
        'attachments': attachments or [],
    }
    return json.dumps(metadata)


def encode_resident_submission(
    attachments: Iterable[AttachmentIn],
    reporter: Optional[ReporterInfo],
    message: Optional[str],
) -> Tuple[List[str], str]:
    """Turn a resident's uploads and contact details into evidence entries and notes.

    Returns (evidence_entries, notes).
    """
    payloads = [
        create_media_payload(name=a.name, type=a.type, data_url=a.dataUrl, size=a.size)
        for a in attachments
    ]
    evidence = [serialize_media_payload(p) for p in payloads]
    notes = build_resident_metadata(
        reporter=reporter,
        message=message,
        attachments=[summarize_media_payload(p) for p in payloads],
    )
    return evidence, notes
