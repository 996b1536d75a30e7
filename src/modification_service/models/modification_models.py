import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ModificationStrategy(str, Enum):
    NODE_EDIT = "NODE_EDIT"
    FULL_FILE = "FULL_FILE"
    COMPONENT_ADDITION = "COMPONENT_ADDITION"


EMERGENCY_APPROACH = "EMERGENCY_STUB"


class ComponentType(str, Enum):
    PAGE = "page"
    COMPONENT = "component"


class ChangeType(str, Enum):
    CREATED = "created"
    MODIFIED = "modified"
    UPDATED = "updated"
    FAILED = "failed"


class ProjectFile(BaseModel):
    """One scanned project file. ``content`` changes only after a successful disk write."""

    path: str
    relative_path: str
    content: str
    line_count: int
    file_type: str
    is_main_file: bool = False

    def replace_content(self, content: str) -> None:
        self.content = content
        self.line_count = len(content.split("\n"))


class ModificationScope(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategy: ModificationStrategy
    reasoning: str = ""
    component_name: Optional[str] = None
    component_type: Optional[ComponentType] = None
    heuristic_confidence: int = 0


class ModificationChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ChangeType
    file: str
    description: str
    success: bool
    approach: str
    timestamp: datetime = Field(default_factory=_utcnow)
    details: dict = Field(default_factory=dict)


class ChangeDigest(BaseModel):
    """Aggregate of change log entries folded out of the verbatim log."""

    count: int = 0
    succeeded: int = 0
    failed: int = 0
    files: List[str] = Field(default_factory=list)
    first_timestamp: Optional[datetime] = None

    def absorb(self, change: ModificationChange) -> None:
        self.count += 1
        if change.success:
            self.succeeded += 1
        else:
            self.failed += 1
        if change.file not in self.files:
            self.files.append(change.file)
        if self.first_timestamp is None or change.timestamp < self.first_timestamp:
            self.first_timestamp = change.timestamp


class ChangeLog(BaseModel):
    entries: List[ModificationChange] = Field(default_factory=list)
    digest: ChangeDigest = Field(default_factory=ChangeDigest)


class ModificationRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    prompt: str = Field(min_length=1)
    session_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    project_id: Optional[str] = None

    @field_validator("prompt")
    @classmethod
    def prompt_has_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("prompt must contain non-whitespace text")
        return v


class ModificationResult(BaseModel):
    """Caller-facing result of one modification request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    selected_files: List[str] = Field(default_factory=list)
    added_files: List[str] = Field(default_factory=list)
    approach: str
    reasoning: str = ""
    modification_summary: str = ""
    error: Optional[str] = None


class ConversationRecord(BaseModel):
    """One request outcome appended to the relational conversation store."""

    session_id: str
    project_id: Optional[str] = None
    prompt: str
    approach: str
    success: bool
    selected_files: List[str] = Field(default_factory=list)
    added_files: List[str] = Field(default_factory=list)
    reasoning: str = ""
    error: Optional[str] = None
