"""
Schemas for the incident report service

Report, ReportUpdate and UserProfile mirror documents in the remote store
(collection names live in repository.py). The remaining models describe
stream events and HTTP request/response bodies.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional, Literal, List, Union

ReportStatus = Literal['Open', 'Under Investigation', 'Solved']
ReportPriority = Literal['Low', 'Medium', 'High', 'Critical']
MediaType = Literal['image', 'video']
ReportSource = Literal['database', 'memory']

REPORT_STATUSES = ('Open', 'Under Investigation', 'Solved')
REPORT_PRIORITIES = ('Low', 'Medium', 'High', 'Critical')


# ---------- Domain ----------

class ReportUpdate(BaseModel):
    date: str = Field(..., description="Calendar date, YYYY-MM-DD")
    time: str = Field(..., description="Clock time, HH:MM")
    note: str = Field(..., description="What changed")


class Report(BaseModel):
    id: str = Field(..., description="CR-<year>-<month>-<random4>")
    title: str = Field('Untitled Report')
    type: str = Field('Incident', description="Free-text category")
    status: ReportStatus = Field('Open')
    priority: ReportPriority = Field('Medium')
    location: str = Field('Unknown')
    date: str = Field(..., description="Incident date, YYYY-MM-DD")
    time: str = Field(..., description="Incident time, HH:MM")
    officer: str = Field('Unassigned', description="Assignee name")
    description: str = Field('No description provided.')
    evidence: List[str] = Field(default_factory=list)
    suspects: List[str] = Field(default_factory=list)
    victims: List[str] = Field(default_factory=list)
    damage: str = Field('N/A')
    notes: str = Field('')
    updates: List[ReportUpdate] = Field(default_factory=list, description="Oldest first")
    reporterId: Optional[str] = Field(None, description="Submitting user, if known")


class UserProfile(BaseModel):
    name: str = Field(..., description="Full name")
    email: EmailStr = Field(..., description="Email address")
    role: str = Field('Resident', description="Role of the account")
    is_active: bool = Field(True, description="Whether user is active")


# ---------- Evidence and resident metadata ----------

class MediaAttachment(BaseModel):
    id: str
    name: str
    type: MediaType
    url: str
    size: Optional[int] = None


class EvidenceBuckets(BaseModel):
    media: List[MediaAttachment] = Field(default_factory=list)
    text: List[str] = Field(default_factory=list)


class ReporterInfo(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    contact: Optional[str] = None
    typeOfReport: Optional[str] = None


class ResidentMetadataResult(BaseModel):
    isStructured: bool
    reporter: Optional[ReporterInfo] = None
    message: Optional[str] = None
    attachmentsCount: int = 0
    submittedAt: Optional[str] = None
    rawNotes: str = ''


# ---------- Stream events ----------

class InitEvent(BaseModel):
    type: Literal['init'] = 'init'
    reports: List[Report]


class ReportEvent(BaseModel):
    type: Literal['created', 'updated']
    report: Report


class DeletedEvent(BaseModel):
    type: Literal['deleted'] = 'deleted'
    id: str


StreamEvent = Union[InitEvent, ReportEvent, DeletedEvent]


# ---------- Requests ----------

class AttachmentIn(BaseModel):
    name: str = Field(..., description="Original file name")
    type: MediaType = Field('image')
    dataUrl: str = Field(..., description="data: URL with the file contents")
    size: Optional[int] = Field(None, description="Size in bytes")


class ReportCreate(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: Optional[str] = None
    title: Optional[str] = None
    type: Optional[str] = None
    priority: Optional[str] = None
    location: Optional[str] = None
    officer: Optional[str] = None
    description: Optional[str] = None
    evidence: Union[List[str], str, None] = None
    suspects: Union[List[str], str, None] = None
    victims: Union[List[str], str, None] = None
    damage: Optional[str] = None
    notes: Optional[str] = None
    reporterId: Optional[str] = None
    reporter: Optional[ReporterInfo] = Field(None, description="Resident contact details")
    message: Optional[str] = Field(None, description="Resident message stored with contact details")
    attachments: List[AttachmentIn] = Field(default_factory=list)


class ReportPatch(BaseModel):
    """Partial update. Only fields present in the request body are applied."""

    model_config = ConfigDict(extra='ignore')

    title: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    location: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    officer: Optional[str] = None
    description: Optional[str] = None
    evidence: Union[List[str], str, None] = None
    suspects: Union[List[str], str, None] = None
    victims: Union[List[str], str, None] = None
    damage: Optional[str] = None
    notes: Optional[str] = None
    reporterId: Optional[str] = None
    updates: Optional[List[ReportUpdate]] = None
    updateNote: Optional[str] = None


# ---------- Responses ----------

class ReportsResponse(BaseModel):
    reports: List[Report]
    source: ReportSource
    error: Optional[str] = None


class ReportResponse(BaseModel):
    report: Report


class ReportDetailsResponse(BaseModel):
    report: Report
    evidence: EvidenceBuckets
    metadata: ResidentMetadataResult


class DeleteResponse(BaseModel):
    success: bool = True
    id: str


class SeedResponse(BaseModel):
    success: bool
    message: str
    reportsInserted: int = 0
    reportsFailed: int = 0
    profilesSynced: int = 0
    reporterUserId: Optional[str] = None
