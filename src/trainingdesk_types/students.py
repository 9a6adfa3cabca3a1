from enum import Enum
from typing import Optional
from pydantic import Field, computed_field, field_validator

from .base import WireModel
from .derived import mask_email
from .events import coerce_identifier


class CompletionStatus(str, Enum):
    ENROLLED = "enrolled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    WITHDRAWN = "withdrawn"


class License(WireModel):
    type: str = ""
    number: str = ""
    state: str = ""
    expiration_date: Optional[str] = None


class Certification(WireModel):
    type: str = ""
    number: str = ""
    issued_by: str = ""
    issue_date: Optional[str] = None
    expiration_date: Optional[str] = None

    def label(self) -> str:
        return f"{self.type} ({self.number})"


class Clinic(WireModel):
    name: str = ""
    address: str = ""
    phone: str = ""


class CourseProgress(WireModel):
    course_id: Optional[str] = None
    course_name: str = ""
    progress_percentage: float = Field(0, ge=0, le=100)
    completed_lessons: int = Field(0, ge=0)
    total_lessons: int = Field(0, ge=0)
    last_access_date: Optional[str] = None
    certificate_earned: bool = False

    @field_validator('course_id', mode='before')
    @classmethod
    def cast_id_to_str(cls, value):
        return coerce_identifier(value)


class Student(WireModel):
    id: str = Field(..., min_length=1)
    first_name: str = ""
    last_name: str = ""
    email: str = Field("", exclude=True)
    license: License = Field(default_factory=License)
    certifications: list[Certification] = Field(default_factory=list)
    occupation: str = ""
    instruments: list[str] = Field(default_factory=list)
    clinic: Clinic = Field(default_factory=Clinic)
    progress: CourseProgress = Field(default_factory=CourseProgress, alias="learnDashProgress")
    enrollment_date: Optional[str] = None
    completion_status: CompletionStatus = CompletionStatus.ENROLLED

    @field_validator('id', mode='before')
    @classmethod
    def cast_id_to_str(cls, value):
        return coerce_identifier(value)

    @field_validator('first_name', 'last_name', 'email', 'occupation', mode='before')
    @classmethod
    def cast_none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator('license', 'clinic', 'progress', mode='before')
    @classmethod
    def cast_none_to_default(cls, value):
        return {} if value is None else value

    @field_validator('certifications', 'instruments', mode='before')
    @classmethod
    def cast_none_to_list(cls, value):
        return [] if value is None else value

    @computed_field(alias="maskedEmail")
    @property
    def masked_email(self) -> str:
        """Redacted address, always derived from the raw email"""
        return mask_email(self.email)


class EventRoster(WireModel):
    event_id: str
    students: list[Student] = Field(default_factory=list)
    total_enrolled: int = 0
    completion_rate: float = 0.0

    @classmethod
    def from_students(cls, event_id: str, students: list[Student]) -> "EventRoster":
        """Build a roster whose totals describe the given students."""
        total = len(students)
        completed = sum(
            1 for student in students
            if student.completion_status == CompletionStatus.COMPLETED.value
        )
        rate = round(completed / total * 100, 1) if total else 0.0
        return cls(
            event_id=event_id,
            students=students,
            total_enrolled=total,
            completion_rate=rate,
        )
