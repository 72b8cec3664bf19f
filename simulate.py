import asyncio
from datetime import date, timedelta

import httpx

URL = "http://localhost:8000/triage"

_today = date.today()

TICKETS = [
    ("Laura Lee", "Login page CSS is broken on mobile devices", "High", 2),
    ("Bob Harris", "The reporting API returns 500 for every request", "Critical", 1),
    ("Paula Lee", "spam spam spam buy cheap watches now", "Low", 5),
    ("George Lee", "Kubernetes deploy pipeline hangs at the rollout step", "Medium", -4),
    ("Julia Walker", "Random unrelated issue with the office printer", "Critical", 10),
    ("Wendy Miller", "Short", "Low", 3),
    ("Rachel Davis", "Possible XSS vulnerability in the comment field", "High", -2),
    ("Hannah Taylor", "Nightly ETL job loads duplicate rows into the warehouse", "Medium", -7),
]


async def send_ticket(client, i, assignee, description, severity, days):
    form = {
        "issuer_name": "Charlie Martinez",
        "issuer_email": "charlie.martinez@example.com",
        "issuer_department": "Support",
        "assignee_name": assignee,
        "assignee_email": f"{assignee.lower().replace(' ', '.')}@example.com",
        "severity": severity,
        "description": description,
        "deadline": (_today + timedelta(days=days)).isoformat(),
    }
    resp = await client.post(URL, json=form)
    data = resp.json()
    print(f"Ticket {i+1:02d} → {data['action']:<22} {data.get('forward_to') or '-':<15} | {description[:40]}")


async def main():
    print(f"🚀 Submitting {len(TICKETS)} tickets...\n")
    async with httpx.AsyncClient(timeout=10) as client:
        for i, ticket in enumerate(TICKETS):
            await send_ticket(client, i, *ticket)
        resp = await client.post("http://localhost:8000/cost-of-delay/notify")
    print(f"\n💸 Total cost of delay: ${resp.json()['cost_data']['total_cost']:.2f}")


if __name__ == "__main__":
    asyncio.run(main())
