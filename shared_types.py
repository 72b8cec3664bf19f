# shared_types.py  ──  records shared by the classifiers, the cost engine and the API
from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from enum import Enum
from typing import Optional


class TicketType(str, Enum):
    BUG = "Bug"
    FEATURE_REQUEST = "Feature Request"
    INCIDENT = "Incident"
    TASK = "Task"
    OTHER = "Other"


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class TicketStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class TriageAction(str, Enum):
    NEED_MORE_INFO = "Need more information"
    DISCARD = "Discard"
    FORWARD = "Forward"


class TriageClass(str, Enum):
    NEED_MORE_INFO = "need_more_info"
    DISCARD = "discard"
    FORWARD_OTHER_TEAM = "forward_other_team"


@dataclass
class TicketForm:
    """A ticket as submitted from the triage form, before any classification."""
    issuer_name: Optional[str]       = None
    issuer_email: Optional[str]      = None
    issuer_department: Optional[str] = None
    assignee_name: Optional[str]     = None
    assignee_email: Optional[str]    = None
    ticket_type: TicketType          = TicketType.BUG
    severity: Severity               = Severity.MEDIUM
    description: Optional[str]       = None
    deadline: Optional[date]         = None
    project: Optional[str]           = None

    def to_dict(self) -> dict:
        return {f.name: _to_json_value(getattr(self, f.name)) for f in fields(self)}


@dataclass
class Ticket(TicketForm):
    """A forwarded ticket tracked by the cost-of-delay engine."""
    id: str                                 = ""
    status: TicketStatus                    = TicketStatus.ACTIVE
    created_at: Optional[datetime]          = None
    completed_at: Optional[datetime]        = None
    delay_days: int                         = 0
    total_delay_cost: float                 = 0.0
    last_calculated: Optional[datetime]     = None

    @classmethod
    def from_form(cls, form: TicketForm, ticket_id: str, created_at: datetime) -> "Ticket":
        values = {f.name: getattr(form, f.name) for f in fields(TicketForm)}
        return cls(**values, id=ticket_id, created_at=created_at)

    @classmethod
    def from_dict(cls, data: dict) -> "Ticket":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["ticket_type"] = TicketType(values.get("ticket_type", TicketType.BUG))
        values["severity"] = Severity(values.get("severity", Severity.MEDIUM))
        values["status"] = TicketStatus(values.get("status", TicketStatus.ACTIVE))
        if values.get("deadline"):
            values["deadline"] = date.fromisoformat(values["deadline"])
        for key in ("created_at", "completed_at", "last_calculated"):
            if values.get(key):
                values[key] = datetime.fromisoformat(values[key])
        return cls(**values)

    def copy(self) -> "Ticket":
        return replace(self)


@dataclass(frozen=True)
class ClassificationResult:
    action: TriageAction
    reasons: tuple[str, ...]         = ()
    discard_reason: Optional[str]    = None
    forward_to: Optional[str]        = None

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "reasons": list(self.reasons),
            "discard_reason": self.discard_reason,
            "forward_to": self.forward_to,
        }


@dataclass
class Prediction:
    predicted_class: TriageClass
    confidence: float
    probabilities: dict[str, float]      = field(default_factory=dict)
    log_probabilities: dict[str, float]  = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "predicted_class": self.predicted_class.value,
            "confidence": self.confidence,
            "probabilities": dict(self.probabilities),
            "log_probabilities": dict(self.log_probabilities),
        }


@dataclass
class TrainingResult:
    success: bool
    total_docs: int                          = 0
    vocabulary_size: int                     = 0
    class_distribution: dict[str, int]       = field(default_factory=dict)
    error: Optional[str]                     = None


def _to_json_value(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value
