# triage.py  ──  the submission flow the UI calls into

import json
import logging
import re
from dataclasses import dataclass
from typing import Optional

from cost_of_delay import CostOfDelayService
from ml.naive_bayes import NaiveBayesClassifier, NotTrainedError
from ml.rule_classifier import RuleClassifier
from shared_types import ClassificationResult, Prediction, TicketForm, TriageAction

logger = logging.getLogger(__name__)


@dataclass
class TriageOutcome:
    result: ClassificationResult
    ticket_id: Optional[str] = None


class TriageService:

    def __init__(
        self,
        rule_classifier: RuleClassifier,
        cost_service: CostOfDelayService,
        bayes: Optional[NaiveBayesClassifier] = None,
    ):
        self.rule_classifier = rule_classifier
        self.cost_service = cost_service
        self.bayes = bayes

    async def submit(self, form: TicketForm) -> TriageOutcome:
        """Classify a ticket; forwarded tickets with a deadline start accruing cost of delay."""
        result = self.rule_classifier.classify(form)

        ticket_id = None
        if result.action == TriageAction.FORWARD and form.deadline:
            ticket_id = await self.cost_service.add_ticket(form)
            logger.info(f"🎫 Ticket {ticket_id} added to cost tracking system")

        return TriageOutcome(result=result, ticket_id=ticket_id)

    def suggest(self, form: TicketForm) -> Prediction:
        if self.bayes is None:
            raise NotTrainedError("No naive Bayes model configured.")
        return self.bayes.predict(form)

    @staticmethod
    def export(form: TicketForm, result: ClassificationResult) -> str:
        payload = {**form.to_dict(), "classification": result.to_dict()}
        return json.dumps(payload, indent=2)

    @staticmethod
    def export_filename(form: TicketForm) -> str:
        issuer = re.sub(r"\s+", "-", form.issuer_name or "unknown")
        return f"ticket-{issuer}.json"
