# salary_service.py  ──  monthly salary lookup used to price a day of delay

import logging
from typing import Optional

from config import SALARY_CSV_SOURCE, WORKING_DAYS_PER_MONTH
from resources import ResourceLoadError, load_text

logger = logging.getLogger(__name__)

# Used when the salary CSV cannot be loaded
FALLBACK_SALARIES: dict[str, float] = {
    "Hannah Taylor": 3431,
    "Charlie Martinez": 3391,
    "Laura Lee": 10264,
    "Bob Harris": 2535,
    "Rachel Davis": 11121,
    "Julia Walker": 7005,
    "Wendy Miller": 9644,
    "Paula Lee": 13899,
    "George Lee": 5138,
    "Bob Martin": 10784,
}


class SalaryService:

    def __init__(self, source: str = SALARY_CSV_SOURCE, working_days: int = WORKING_DAYS_PER_MONTH):
        self.source = source
        self.working_days = working_days
        self._salaries: dict[str, float] = {}

    async def load(self, source: Optional[str] = None) -> int:
        """
        Load `name,monthlySalary` rows from the configured source.
        Falls back to FALLBACK_SALARIES if the source is unreachable or has no
        usable rows. Returns the number of employees known afterwards.
        """
        source = source or self.source
        try:
            text = await load_text(source)
            loaded = self.parse_csv(text)
            if loaded == 0:
                raise ResourceLoadError(f"No salary rows found in {source}")
            logger.info(f"Loaded {loaded} salary records from {source}")
        except ResourceLoadError as e:
            logger.error(f"Error loading salary data: {e}. Using fallback table.")
            self.load_fallback()
        return len(self._salaries)

    def load_fallback(self) -> None:
        self._salaries.update(FALLBACK_SALARIES)

    def parse_csv(self, csv_text: str) -> int:
        """Parse salary rows (header skipped). Malformed rows are ignored."""
        loaded = 0
        for line in csv_text.split("\n")[1:]:
            line = line.strip()
            if not line:
                continue
            values = line.split(",")
            if len(values) < 2:
                continue
            try:
                monthly_salary = float(values[1].strip())
            except ValueError:
                continue
            self._salaries[values[0].strip()] = monthly_salary
            loaded += 1
        return loaded

    def get_daily_cost(self, employee_name: Optional[str]) -> float:
        monthly_salary = self._salaries.get(employee_name) if employee_name else None
        if not monthly_salary:
            logger.warning(f"No salary data found for {employee_name}")
            return 0.0
        return monthly_salary / self.working_days

    def get_all_employees(self) -> list[str]:
        return list(self._salaries)

    def get_salary_data(self) -> dict[str, float]:
        return dict(self._salaries)
