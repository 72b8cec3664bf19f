# api_server.py
# FastAPI server: the HTTP boundary the triage UI talks to.
# Services are built once per app and reached through app.state, never module globals.

import logging
import math
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from pydantic import BaseModel, field_validator

from config import TICKET_STORE_BACKEND, configure_logging
from cost_of_delay import CostOfDelayService
from ml.naive_bayes import NaiveBayesClassifier, NotTrainedError
from ml.rule_classifier import RuleClassifier
from notifications import build_sink
from salary_service import SalaryService
from shared_types import Severity, TicketForm, TicketType
from ticket_store import build_store
from triage import TriageService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    salary: SalaryService
    bayes: NaiveBayesClassifier
    cost: CostOfDelayService
    triage: TriageService


def build_services(store_backend: str = TICKET_STORE_BACKEND) -> Services:
    salary = SalaryService()
    bayes = NaiveBayesClassifier()
    cost = CostOfDelayService(salary, store=build_store(store_backend), sink=build_sink())
    triage = TriageService(RuleClassifier(), cost, bayes=bayes)
    return Services(salary=salary, bayes=bayes, cost=cost, triage=triage)


def get_services(request: Request) -> Services:
    return request.app.state.services


def _finite_or_none(value):
    # JSON has no NaN/Infinity; empty classes give -inf log-probabilities
    if isinstance(value, dict):
        return {k: _finite_or_none(v) for k, v in value.items()}
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


# ── Request / Response Models ─────────────────────────────────────────────────

class TicketFormRequest(BaseModel):
    issuer_name: str | None = None
    issuer_email: str | None = None
    issuer_department: str | None = None
    assignee_name: str | None = None
    assignee_email: str | None = None
    ticket_type: TicketType = TicketType.BUG
    severity: Severity = Severity.MEDIUM
    description: str | None = None
    deadline: date | None = None
    project: str | None = None

    @field_validator("deadline", mode="before")
    @classmethod
    def _empty_deadline(cls, value):
        # HTML date inputs post "" when left empty
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_form(self) -> TicketForm:
        return TicketForm(**self.model_dump())


class ClassificationResponse(BaseModel):
    action: str
    reasons: list[str]
    discard_reason: str | None
    forward_to: str | None
    ticket_id: str | None = None


class HealthResponse(BaseModel):
    status: str
    tracked_tickets: int
    model_trained: bool
    salary_records: int


# ── Routes ────────────────────────────────────────────────────────────────────

router = APIRouter()


@router.post("/triage", response_model=ClassificationResponse)
async def triage_ticket(req: TicketFormRequest, services: Services = Depends(get_services)):
    outcome = await services.triage.submit(req.to_form())
    return ClassificationResponse(**outcome.result.to_dict(), ticket_id=outcome.ticket_id)


@router.post("/triage/export")
async def export_ticket(req: TicketFormRequest, services: Services = Depends(get_services)):
    """Classify without registering and return the downloadable JSON document."""
    form = req.to_form()
    result = services.triage.rule_classifier.classify(form)
    filename = services.triage.export_filename(form)
    return Response(
        content=services.triage.export(form, result),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/triage/suggest")
async def suggest_class(req: TicketFormRequest, services: Services = Depends(get_services)):
    try:
        prediction = services.triage.suggest(req.to_form())
    except NotTrainedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _finite_or_none(prediction.to_dict())


@router.get("/tickets")
async def list_tickets(services: Services = Depends(get_services)):
    return [t.to_dict() for t in await services.cost.get_all_tickets()]


@router.get("/tickets/{ticket_id}")
async def get_ticket(ticket_id: str, services: Services = Depends(get_services)):
    ticket = await services.cost.get_ticket(ticket_id)
    if ticket is None:
        raise HTTPException(status_code=404, detail=f"Unknown ticket {ticket_id}")
    return ticket.to_dict()


@router.post("/tickets/{ticket_id}/complete")
async def complete_ticket(ticket_id: str, services: Services = Depends(get_services)):
    ticket = await services.cost.complete_ticket(ticket_id)
    if ticket is None:
        raise HTTPException(status_code=404, detail=f"Unknown ticket {ticket_id}")
    return ticket.to_dict()


@router.delete("/tickets/{ticket_id}", status_code=204)
async def delete_ticket(ticket_id: str, services: Services = Depends(get_services)):
    if not await services.cost.remove_ticket(ticket_id):
        raise HTTPException(status_code=404, detail=f"Unknown ticket {ticket_id}")
    return Response(status_code=204)


@router.get("/cost-of-delay")
async def cost_of_delay(services: Services = Depends(get_services)):
    report = await services.cost.calculate_cost_of_delay()
    return report.to_dict()


@router.post("/cost-of-delay/notify")
async def notify_managers(services: Services = Depends(get_services)):
    result = await services.cost.process_overdue_tickets()
    return result.to_dict()


@router.get("/salaries")
async def list_salaries(services: Services = Depends(get_services)):
    return services.salary.get_salary_data()


@router.post("/model/train")
async def train_model(services: Services = Depends(get_services)):
    return asdict(await services.bayes.train())


@router.get("/model/stats")
async def model_stats(services: Services = Depends(get_services)):
    return services.bayes.get_model_stats()


@router.get("/health", response_model=HealthResponse)
async def health_check(services: Services = Depends(get_services)):
    return HealthResponse(
        status="ok",
        tracked_tickets=await services.cost.store.count(),
        model_trained=services.bayes.is_trained,
        salary_records=len(services.salary.get_all_employees()),
    )


# ── App Factory ───────────────────────────────────────────────────────────────

def create_app(services: Optional[Services] = None, load_data: bool = True) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if load_data:
            svc = app.state.services
            await svc.salary.load()
            result = await svc.bayes.train()
            if result.success:
                logger.info(f"✅  Naive Bayes ready ({result.total_docs} docs)")
            else:
                logger.warning(f"⚠️  Naive Bayes unavailable ({result.error}). /triage/suggest disabled.")
        yield

    app = FastAPI(
        title="Ticket Triage Engine",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services if services is not None else build_services()
    app.include_router(router)
    return app


# ── Entry Point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    from config import API_HOST, API_PORT
    configure_logging()
    uvicorn.run("api_server:create_app", factory=True, host=API_HOST, port=API_PORT, reload=True)
