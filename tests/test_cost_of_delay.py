# tests/test_cost_of_delay.py

import logging
import re
from datetime import date, datetime, timedelta

import pytest

from cost_of_delay import CostOfDelayService
from notifications import MockEmailSink
from salary_service import SalaryService
from shared_types import TicketForm, TicketStatus

NOW = datetime(2026, 10, 19, 9, 30)
TODAY = NOW.date()


def _salaries() -> SalaryService:
    service = SalaryService()
    service.parse_csv("name,monthlySalary\nAda Lovelace,2000\nAlan Turing,4000\n")
    return service


def _form(days_overdue: int, assignee: str = "Ada Lovelace", issuer_email="grace.hall@example.com",
          issuer_name="Grace Hall") -> TicketForm:
    return TicketForm(
        issuer_name=issuer_name,
        issuer_email=issuer_email,
        assignee_name=assignee,
        assignee_email="assignee@example.com",
        description=f"Overdue by {days_overdue} days",
        deadline=TODAY - timedelta(days=days_overdue),
    )


@pytest.fixture
def sink():
    return MockEmailSink()


@pytest.fixture
def service(sink):
    return CostOfDelayService(_salaries(), sink=sink, now=lambda: NOW)


# --------------------------
# Ticket lifecycle
# --------------------------

@pytest.mark.asyncio
async def test_add_ticket_registers_active_ticket(service):
    ticket_id = await service.add_ticket(_form(5))
    ticket = await service.get_ticket(ticket_id)

    assert ticket.status == TicketStatus.ACTIVE
    assert ticket.created_at == NOW
    assert ticket.delay_days == 0
    assert ticket.total_delay_cost == 0.0


def test_generated_ids_are_unique_and_named_after_issuer(service):
    form = TicketForm(issuer_name="Grace  Hall")
    ids = {service.generate_ticket_id(form) for _ in range(50)}

    assert len(ids) == 50
    assert all(i.startswith("GraceHall_") for i in ids)
    assert service.generate_ticket_id(TicketForm()).startswith("unknown_")


@pytest.mark.asyncio
async def test_complete_and_remove(service):
    ticket_id = await service.add_ticket(_form(5))
    service.update_delay_history(ticket_id, 5, 500.0)

    completed = await service.complete_ticket(ticket_id)
    assert completed.status == TicketStatus.COMPLETED
    assert completed.completed_at == NOW
    assert await service.complete_ticket("missing") is None

    assert await service.remove_ticket(ticket_id) is True
    assert await service.get_ticket(ticket_id) is None
    assert service.get_delay_history(ticket_id) == []


# --------------------------
# Aggregation
# --------------------------

@pytest.mark.asyncio
async def test_five_days_overdue_at_2000_a_month(service):
    ticket_id = await service.add_ticket(_form(5))
    report = await service.calculate_cost_of_delay()

    assert len(report.overdue_tickets) == 1
    overdue = report.overdue_tickets[0]
    assert overdue.daily_cost == 100.0
    assert overdue.delay_cost == 500.0
    assert report.total_cost == 500.0

    stored = await service.get_ticket(ticket_id)
    assert stored.delay_days == 5
    assert stored.total_delay_cost == 500.0
    assert stored.last_calculated == NOW


@pytest.mark.asyncio
async def test_deadline_today_is_not_overdue(service):
    await service.add_ticket(_form(0))
    await service.add_ticket(_form(-3))

    report = await service.calculate_cost_of_delay()
    assert report.overdue_tickets == []
    assert report.total_cost == 0


@pytest.mark.asyncio
async def test_completed_tickets_are_ignored(service):
    ticket_id = await service.add_ticket(_form(5))
    await service.complete_ticket(ticket_id)

    assert (await service.calculate_cost_of_delay()).overdue_tickets == []


@pytest.mark.asyncio
async def test_unknown_assignee_is_overdue_at_zero_cost(service, caplog):
    await service.add_ticket(_form(3, assignee="Somebody New"))

    with caplog.at_level(logging.WARNING):
        report = await service.calculate_cost_of_delay()

    assert len(report.overdue_tickets) == 1
    assert report.overdue_tickets[0].delay_cost == 0.0
    assert "No salary data found for Somebody New" in caplog.text


@pytest.mark.asyncio
async def test_costs_are_grouped_by_manager(service):
    await service.add_ticket(_form(5))                                 # 500
    await service.add_ticket(_form(2, assignee="Alan Turing"))         # 400
    await service.add_ticket(_form(1, issuer_email="ops@example.com", issuer_name="Ops Lead"))   # 100
    await service.add_ticket(_form(4, issuer_email=None, issuer_name="No Email"))                # 400

    report = await service.calculate_cost_of_delay()
    by_manager = {m.manager_name: m for m in report.manager_costs}

    assert by_manager["Grace Hall"].total_cost == 900.0
    assert len(by_manager["Grace Hall"].tickets) == 2
    assert by_manager["Ops Lead"].total_cost == 100.0
    assert by_manager["No Email"].manager_email is None
    assert report.total_cost == 1400.0


@pytest.mark.asyncio
async def test_recompute_is_idempotent(service):
    await service.add_ticket(_form(5))
    await service.add_ticket(_form(2, assignee="Alan Turing"))

    first = await service.calculate_cost_of_delay()
    second = await service.calculate_cost_of_delay()

    assert first.to_dict() == second.to_dict()


@pytest.mark.asyncio
async def test_cost_follows_the_calculation_date(service):
    ticket_id = await service.add_ticket(_form(5))
    await service.calculate_cost_of_delay(today=TODAY + timedelta(days=2))

    assert (await service.get_ticket(ticket_id)).total_delay_cost == 700.0
    assert (await service.get_ticket(ticket_id)).last_calculated == datetime(2026, 10, 21, 9, 30)
    await service.calculate_cost_of_delay()
    assert (await service.get_ticket(ticket_id)).total_delay_cost == 500.0
    assert (await service.get_ticket(ticket_id)).last_calculated == NOW


# --------------------------
# Notifications
# --------------------------

@pytest.mark.asyncio
async def test_email_figures_add_up_to_manager_total(service):
    await service.add_ticket(_form(5))
    await service.add_ticket(_form(3, assignee="Alan Turing"))
    manager = (await service.calculate_cost_of_delay()).manager_costs[0]

    email = service.generate_manager_email(manager)

    ticket_ids = re.findall(r"^Ticket: (\S+)$", email, re.MULTILINE)
    costs = [float(c) for c in re.findall(r"^Total Delay Cost: \$([\d.]+)$", email, re.MULTILINE)]
    total = float(re.search(r"^Total Cost of Delay: \$([\d.]+)$", email, re.MULTILINE).group(1))

    assert ticket_ids == [t.ticket_id for t in manager.tickets]
    assert sum(costs) == pytest.approx(total)
    assert total == pytest.approx(manager.total_cost)
    assert email.startswith("Subject: Cost of Delay Report - 10/19/2026")
    assert "Dear Grace Hall," in email


@pytest.mark.asyncio
async def test_send_manager_notification_uses_sink(service, sink):
    await service.add_ticket(_form(5))
    manager = (await service.calculate_cost_of_delay()).manager_costs[0]

    notification = await service.send_manager_notification(manager)

    assert notification.success is True
    assert notification.recipient == "grace.hall@example.com"
    assert notification.subject == "Cost of Delay Report - 10/19/2026"
    assert sink.outbox[0].content == notification.email_content


@pytest.mark.asyncio
async def test_process_overdue_tickets_skips_managers_without_email(service, sink):
    first = await service.add_ticket(_form(5))
    await service.add_ticket(_form(4, issuer_email=None, issuer_name="No Email"))

    result = await service.process_overdue_tickets()

    assert result.cost_data.total_cost == 900.0
    assert [n.recipient for n in result.notifications] == ["grace.hall@example.com"]
    assert len(sink.outbox) == 1

    history = service.get_delay_history(first)
    assert len(history) == 1
    assert history[0].delay_days == 5
    assert history[0].cost == 500.0
