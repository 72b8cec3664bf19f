# ml/rule_classifier.py

import re
from datetime import date
from typing import Callable, Optional

from config import DEFAULT_TEAM, MIN_DESCRIPTION_LENGTH, URGENT_DEADLINE_DAYS
from shared_types import ClassificationResult, Severity, TicketForm, TriageAction

_DISCARD_PATTERNS = [
    (re.compile(r"spam|test ticket|ignore|dummy"), None,
     "Content appears to be spam or a test ticket."),
    (re.compile(r"feature request.*later|low priority|wish list"), Severity.LOW,
     "Low priority feature request better tracked in product backlog."),
]

# Checked in order, first match wins
TEAM_KEYWORDS = {
    "Frontend": re.compile(r"frontend|ui|ux|css|html|javascript|react|angular|vue"),
    "Backend": re.compile(r"backend|server|api|database|sql|node|python|java|go|dotnet"),
    "Infrastructure": re.compile(r"deploy|infrastructure|k8s|kubernetes|aws|azure|gcp|performance|latency"),
    "Security": re.compile(r"security|vulnerability|xss|sql injection|sqli|auth|authorization|cve"),
    "Data": re.compile(r"data|etl|warehouse|analytics|ml|model|dataset"),
    "Product": re.compile(r"feature request|enhancement|improvement|product request"),
}

_URGENT_FRONTEND = re.compile(r"frontend|ui|ux")
_URGENT_BACKEND = re.compile(r"backend|api|database")


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class RuleClassifier:
    """
    Deterministic triage: completeness check, discard heuristics,
    keyword routing, urgency fallback, then the default Triage team.
    """

    def __init__(
        self,
        min_description_length: int = MIN_DESCRIPTION_LENGTH,
        urgent_deadline_days: int = URGENT_DEADLINE_DAYS,
        today: Callable[[], date] = date.today,
    ):
        self.min_description_length = min_description_length
        self.urgent_deadline_days = urgent_deadline_days
        self._today = today

    def missing_information(self, form: TicketForm) -> list[str]:
        reasons = []
        if _blank(form.issuer_name):
            reasons.append("Missing issuer name.")
        if _blank(form.assignee_name):
            reasons.append("Missing issued to field.")
        if _blank(form.assignee_email):
            reasons.append("Missing issued to email.")
        if _blank(form.issuer_email):
            reasons.append("Missing issuer contact (email).")
        if len((form.description or "").strip()) < self.min_description_length:
            reasons.append(
                "Description too short, please provide reproduction steps and expected behaviour."
            )
        if form.deadline is None:
            reasons.append("Missing deadline.")
        return reasons

    def classify(self, form: TicketForm, today: Optional[date] = None) -> ClassificationResult:
        today = today or self._today()
        lower_desc = (form.description or "").lower()

        info_issues = self.missing_information(form)
        if info_issues:
            return ClassificationResult(
                action=TriageAction.NEED_MORE_INFO,
                reasons=tuple(info_issues),
            )

        discard_reasons = [
            reason
            for pattern, severity, reason in _DISCARD_PATTERNS
            if pattern.search(lower_desc) and (severity is None or form.severity == severity)
        ]
        if discard_reasons:
            return ClassificationResult(
                action=TriageAction.DISCARD,
                reasons=tuple(discard_reasons),
                discard_reason=" ".join(discard_reasons),
            )

        # no TicketType value names a team yet, so only the keyword match can fire here
        ticket_type = form.ticket_type.value.lower() if form.ticket_type else ""
        for team, pattern in TEAM_KEYWORDS.items():
            if pattern.search(lower_desc) or team.lower() == ticket_type:
                return ClassificationResult(
                    action=TriageAction.FORWARD,
                    reasons=(f"Matches keywords for {team} team.",),
                    forward_to=team,
                )

        days_until_deadline = (form.deadline - today).days if form.deadline else None
        is_critical = form.severity == Severity.CRITICAL
        if is_critical or (
            days_until_deadline is not None and days_until_deadline <= self.urgent_deadline_days
        ):
            if _URGENT_FRONTEND.search(lower_desc):
                team = "Frontend"
            elif _URGENT_BACKEND.search(lower_desc):
                team = "Backend"
            else:
                team = DEFAULT_TEAM
            trigger = "Marked as Critical." if is_critical else f"Deadline within {days_until_deadline} day(s)."
            return ClassificationResult(
                action=TriageAction.FORWARD,
                reasons=(trigger, f"Recommend urgent review by {team} team."),
                forward_to=team,
            )

        return ClassificationResult(
            action=TriageAction.FORWARD,
            reasons=(f"No clear specialized team match; route to {DEFAULT_TEAM} team for prioritization.",),
            forward_to=DEFAULT_TEAM,
        )
