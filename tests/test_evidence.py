"""Tests for evidence decoding and resident metadata."""

import json

import pytest

from evidence import (
    ImageRef,
    PlainText,
    StructuredMediaPayload,
    VideoRef,
    build_resident_metadata,
    create_media_payload,
    decode_evidence,
    encode_resident_submission,
    parse_evidence,
    parse_resident_metadata,
    serialize_media_payload,
)
from schemas import AttachmentIn, ReporterInfo


class TestDecodeEvidence:

    def test_plain_text(self):
        assert decode_evidence("stolen bike") == PlainText("stolen bike")

    def test_malformed_json_is_text(self):
        assert decode_evidence("{") == PlainText("{")

    def test_json_of_other_kind_is_text(self):
        entry = json.dumps({"kind": "something-else", "dataUrl": "data:image/png;base64,AA"})
        assert isinstance(decode_evidence(entry), PlainText)

    def test_image_link(self):
        decoded = decode_evidence("https://x.com/photo.jpg")
        assert isinstance(decoded, ImageRef)
        assert decoded.url == "https://x.com/photo.jpg"

    def test_video_link_with_query(self):
        decoded = decode_evidence("https://cdn.example.com/clip.MP4?token=abc")
        assert isinstance(decoded, VideoRef)

    def test_link_without_media_extension_is_text(self):
        assert isinstance(decode_evidence("https://example.com/case/42"), PlainText)

    @pytest.mark.parametrize("entry,kind", [
        ("data:image/png;base64,iVBORw0KGgo=", ImageRef),
        ("data:video/mp4;base64,AAAAIGZ0eXA=", VideoRef),
    ])
    def test_data_urls(self, entry, kind):
        decoded = decode_evidence(entry)
        assert isinstance(decoded, kind)
        assert decoded.url == entry

    def test_structured_payload(self):
        payload = create_media_payload(
            name="door.jpg", type="image", data_url="data:image/jpeg;base64,/9j/", size=2048, id="att-1",
        )
        decoded = decode_evidence(serialize_media_payload(payload))

        assert decoded == StructuredMediaPayload(
            id="att-1", name="door.jpg", type="image", data_url="data:image/jpeg;base64,/9j/", size=2048,
        )


class TestParseEvidence:

    def test_buckets(self):
        payload = serialize_media_payload(
            create_media_payload(name="clip.mp4", type="video", data_url="data:video/mp4;base64,AA", id="v1")
        )
        buckets = parse_evidence(["Fingerprints on window", "https://x.com/photo.jpg", payload, ""])

        assert buckets.text == ["Fingerprints on window"]
        assert [m.type for m in buckets.media] == ["image", "video"]
        assert buckets.media[1].id == "v1"
        assert buckets.media[1].url == "data:video/mp4;base64,AA"

    def test_empty_and_none(self):
        assert parse_evidence(None).media == []
        assert parse_evidence([]).text == []

    def test_bare_string(self):
        assert parse_evidence("CCTV footage").text == ["CCTV footage"]


class TestResidentMetadata:

    def test_empty_notes(self):
        result = parse_resident_metadata("")
        assert result.isStructured is False
        assert result.attachmentsCount == 0
        assert result.rawNotes == ""

    def test_unstructured_notes(self):
        result = parse_resident_metadata("Neighbour heard glass breaking")
        assert result.isStructured is False
        assert result.message == "Neighbour heard glass breaking"
        assert result.rawNotes == "Neighbour heard glass breaking"

    def test_structured_notes(self):
        notes = build_resident_metadata(
            reporter=ReporterInfo(name="Ana Cruz", contact="0917", typeOfReport="Theft"),
            message="My bike was taken",
            attachments=[{"id": "a"}, {"id": "b"}],
            submitted_at="2024-05-01T08:00:00+00:00",
        )
        result = parse_resident_metadata(notes)

        assert result.isStructured is True
        assert result.reporter.name == "Ana Cruz"
        assert result.reporter.address is None
        assert result.message == "My bike was taken"
        assert result.rawNotes == "My bike was taken"
        assert result.attachmentsCount == 2
        assert result.submittedAt == "2024-05-01T08:00:00+00:00"

    def test_structured_notes_with_bad_fields(self):
        notes = json.dumps({"kind": "resident-metadata", "reporter": "nobody", "message": 5, "attachments": {}})
        result = parse_resident_metadata(notes)

        assert result.isStructured is True
        assert result.reporter.name is None
        assert result.message == ""
        assert result.attachmentsCount == 0


class TestEncodeResidentSubmission:

    def test_evidence_and_notes(self):
        attachments = [
            AttachmentIn(name="front.png", type="image", dataUrl="data:image/png;base64,AA", size=10),
            AttachmentIn(name="clip.webm", type="video", dataUrl="data:video/webm;base64,BB"),
        ]
        evidence, notes = encode_resident_submission(
            attachments, ReporterInfo(name="Ana Cruz"), "Please check the footage",
        )

        decoded = [decode_evidence(e) for e in evidence]
        assert [d.name for d in decoded] == ["front.png", "clip.webm"]
        assert [d.type for d in decoded] == ["image", "video"]

        metadata = parse_resident_metadata(notes)
        assert metadata.isStructured is True
        assert metadata.attachmentsCount == 2
        assert metadata.reporter.name == "Ana Cruz"

        summaries = json.loads(notes)["attachments"]
        assert "dataUrl" not in summaries[0]
        assert summaries[0]["id"] == decoded[0].id
