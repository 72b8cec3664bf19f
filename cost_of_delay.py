# cost_of_delay.py  ──  prices overdue tickets and reports them to the issuing managers

import logging
import re
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Callable, Optional

from config import NOTIFICATION_SENDER
from notifications import MockEmailSink, NotificationSink, OutgoingMessage
from salary_service import SalaryService
from shared_types import Ticket, TicketForm, TicketStatus
from ticket_store import InMemoryTicketStore, TicketStore

logger = logging.getLogger(__name__)


@dataclass
class OverdueTicket:
    ticket: Ticket
    daily_cost: float
    delay_cost: float

    def to_dict(self) -> dict:
        return {**self.ticket.to_dict(), "daily_cost": self.daily_cost, "delay_cost": self.delay_cost}


@dataclass
class ManagerTicketCost:
    ticket_id: str
    issued_to: Optional[str]
    delay_days: int
    daily_cost: float
    delay_cost: float
    description: Optional[str]


@dataclass
class ManagerCost:
    manager_name: Optional[str]
    manager_email: Optional[str]
    total_cost: float                       = 0.0
    tickets: list[ManagerTicketCost]        = field(default_factory=list)


@dataclass
class CostOfDelayReport:
    overdue_tickets: list[OverdueTicket]
    manager_costs: list[ManagerCost]
    total_cost: float

    def to_dict(self) -> dict:
        return {
            "overdue_tickets": [t.to_dict() for t in self.overdue_tickets],
            "manager_costs": [asdict(m) for m in self.manager_costs],
            "total_cost": self.total_cost,
        }


@dataclass
class DelayHistoryEntry:
    date: datetime
    delay_days: int
    cost: float


@dataclass
class Notification:
    success: bool
    email_content: str
    recipient: Optional[str]
    subject: str


@dataclass
class OverdueProcessingResult:
    cost_data: CostOfDelayReport
    notifications: list[Notification]

    def to_dict(self) -> dict:
        return {
            "cost_data": self.cost_data.to_dict(),
            "notifications": [asdict(n) for n in self.notifications],
        }


def report_date(day: date) -> str:
    return f"{day.month}/{day.day}/{day.year}"


class CostOfDelayService:
    """
    Tracks forwarded tickets and prices their overdue days at the assignee's
    daily cost. Costs are recomputed from scratch on every calculation.
    """

    def __init__(
        self,
        salary_service: SalaryService,
        store: Optional[TicketStore] = None,
        sink: Optional[NotificationSink] = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.salary_service = salary_service
        self.store = store if store is not None else InMemoryTicketStore()
        self.sink = sink if sink is not None else MockEmailSink()
        self._now = now
        self._delay_history: dict[str, list[DelayHistoryEntry]] = {}

    # ── Ticket lifecycle ──────────────────────────────────────────────────────

    def generate_ticket_id(self, form: TicketForm) -> str:
        issuer = re.sub(r"\s+", "", form.issuer_name or "") or "unknown"
        timestamp = int(time.time() * 1000)
        return f"{issuer}_{timestamp}_{uuid.uuid4().hex[:6]}"

    async def add_ticket(self, form: TicketForm) -> str:
        ticket = Ticket.from_form(form, self.generate_ticket_id(form), created_at=self._now())
        return await self.store.add(ticket)

    async def get_all_tickets(self) -> list[Ticket]:
        return await self.store.all()

    async def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        return await self.store.get(ticket_id)

    async def complete_ticket(self, ticket_id: str) -> Optional[Ticket]:
        ticket = await self.store.get(ticket_id)
        if ticket is None:
            return None
        ticket.status = TicketStatus.COMPLETED
        ticket.completed_at = self._now()
        await self.store.save(ticket)
        return ticket

    async def remove_ticket(self, ticket_id: str) -> bool:
        self._delay_history.pop(ticket_id, None)
        return await self.store.delete(ticket_id)

    # ── Delay history ─────────────────────────────────────────────────────────

    def get_delay_history(self, ticket_id: str) -> list[DelayHistoryEntry]:
        return list(self._delay_history.get(ticket_id, []))

    def update_delay_history(self, ticket_id: str, delay_days: int, cost: float) -> None:
        self._delay_history.setdefault(ticket_id, []).append(
            DelayHistoryEntry(date=self._now(), delay_days=delay_days, cost=cost)
        )

    # ── Aggregation ───────────────────────────────────────────────────────────

    async def calculate_cost_of_delay(self, today: Optional[date] = None) -> CostOfDelayReport:
        """Price every ticket in the store and persist the refreshed delay fields."""
        report = self.aggregate_costs(await self.store.all(), today)
        for overdue in report.overdue_tickets:
            await self.store.save(overdue.ticket)
        return report

    def aggregate_costs(self, tickets: list[Ticket], today: Optional[date] = None) -> CostOfDelayReport:
        """
        Synchronous pricing pass over `tickets`. Overdue tickets get their delay
        fields rewritten; `last_calculated` carries the pricing date.
        """
        now = self._now()
        if today is None or today == now.date():
            today, calculated_at = now.date(), now
        else:
            calculated_at = datetime.combine(today, now.time())

        overdue_tickets = []
        manager_costs: dict[str, ManagerCost] = {}

        for ticket in tickets:
            if ticket.status != TicketStatus.ACTIVE or ticket.deadline is None:
                continue

            days_overdue = (today - ticket.deadline).days
            if days_overdue <= 0:
                continue

            daily_cost = self.salary_service.get_daily_cost(ticket.assignee_name)
            delay_cost = daily_cost * days_overdue

            ticket.delay_days = days_overdue
            ticket.total_delay_cost = delay_cost
            ticket.last_calculated = calculated_at

            overdue_tickets.append(
                OverdueTicket(ticket=ticket.copy(), daily_cost=daily_cost, delay_cost=delay_cost)
            )

            manager_key = ticket.issuer_email or ticket.issuer_name or ""
            manager = manager_costs.setdefault(
                manager_key,
                ManagerCost(manager_name=ticket.issuer_name, manager_email=ticket.issuer_email),
            )
            manager.total_cost += delay_cost
            manager.tickets.append(ManagerTicketCost(
                ticket_id=ticket.id,
                issued_to=ticket.assignee_name,
                delay_days=days_overdue,
                daily_cost=daily_cost,
                delay_cost=delay_cost,
                description=ticket.description,
            ))

        managers = list(manager_costs.values())
        return CostOfDelayReport(
            overdue_tickets=overdue_tickets,
            manager_costs=managers,
            total_cost=sum(m.total_cost for m in managers),
        )

    # ── Notifications ─────────────────────────────────────────────────────────

    def report_subject(self, today: Optional[date] = None) -> str:
        today = today or self._now().date()
        return f"Cost of Delay Report - {report_date(today)}"

    def generate_manager_email(self, manager: ManagerCost, today: Optional[date] = None) -> str:
        lines = [
            f"Subject: {self.report_subject(today)}",
            "",
            f"Dear {manager.manager_name},",
            "",
            "The following tickets assigned to your team are overdue and incurring daily costs:",
            "",
        ]
        for ticket in manager.tickets:
            lines += [
                f"Ticket: {ticket.ticket_id}",
                f"Assigned to: {ticket.issued_to}",
                f"Delay: {ticket.delay_days} day(s)",
                f"Daily Cost: ${ticket.daily_cost:.2f}",
                f"Total Delay Cost: ${ticket.delay_cost:.2f}",
                f"Description: {ticket.description}",
                "",
            ]
        lines += [
            f"Total Cost of Delay: ${manager.total_cost:.2f}",
            "",
            "Please ensure these tickets are prioritized and completed as soon as possible "
            "to minimize additional costs.",
            "",
            "Best regards,",
            NOTIFICATION_SENDER,
            "",
        ]
        return "\n".join(lines)

    async def send_manager_notification(self, manager: ManagerCost) -> Notification:
        today = self._now().date()
        subject = self.report_subject(today)
        email_content = self.generate_manager_email(manager, today)
        success = await self.sink.send(
            OutgoingMessage(recipient=manager.manager_email, subject=subject, content=email_content)
        )
        return Notification(
            success=success,
            email_content=email_content,
            recipient=manager.manager_email,
            subject=subject,
        )

    async def process_overdue_tickets(self) -> OverdueProcessingResult:
        """Recompute costs, then notify every manager with an email, one after another."""
        cost_data = await self.calculate_cost_of_delay()
        for overdue in cost_data.overdue_tickets:
            self.update_delay_history(overdue.ticket.id, overdue.ticket.delay_days, overdue.delay_cost)

        notifications = []
        for manager in cost_data.manager_costs:
            if manager.manager_email:
                notifications.append(await self.send_manager_notification(manager))

        return OverdueProcessingResult(cost_data=cost_data, notifications=notifications)
