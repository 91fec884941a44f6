"""
models/report.py
----------------
Saved report definitions: what to compute, over which dates, with which
grouping and filters.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from models.transaction import TRANSACTION_TYPES, Transaction, is_number
from utils.dates import parse_date
from utils.errors import ValidationError

REPORT_TYPES = ("income_expense", "category", "trend", "budget")
GROUPINGS = ("day", "week", "month", "year")


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def validate(self) -> None:
        if not isinstance(self.start, date) or not isinstance(self.end, date):
            raise ValidationError("Date range bounds must be dates")
        if self.start > self.end:
            raise ValidationError(f"Date range start {self.start} is after end {self.end}")

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end

    def to_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}

    @classmethod
    def from_dict(cls, data: dict) -> "DateRange":
        if not isinstance(data, dict):
            raise ValidationError("date_range must be an object with 'start' and 'end'")
        return cls(
            start=parse_date(data.get("start"), "date_range.start"),
            end=parse_date(data.get("end"), "date_range.end"),
        )


@dataclass(frozen=True)
class ReportFilters:
    """
    Optional narrowing applied to transactions before a report runs.
    Empty/None criteria match everything; amount bounds are inclusive.
    """
    categories: tuple = ()
    types: tuple = ()
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None

    def validate(self) -> None:
        for label in ("categories", "types"):
            values = getattr(self, label)
            if not isinstance(values, (list, tuple)) or not all(isinstance(v, str) for v in values):
                raise ValidationError(f"Filter {label} must be a list of strings, got {values!r}")
        for t in self.types:
            if t not in TRANSACTION_TYPES:
                raise ValidationError(f"Invalid transaction type in filters: {t!r}")
        for label in ("min_amount", "max_amount"):
            value = getattr(self, label)
            if value is not None and not is_number(value):
                raise ValidationError(f"Filter {label} must be a number, got {value!r}")
        if (
            self.min_amount is not None
            and self.max_amount is not None
            and self.min_amount > self.max_amount
        ):
            raise ValidationError("Filter min_amount is greater than max_amount")

    def matches(self, tx: Transaction) -> bool:
        if self.categories and tx.category not in self.categories:
            return False
        if self.types and tx.type not in self.types:
            return False
        if self.min_amount is not None and tx.amount < self.min_amount:
            return False
        if self.max_amount is not None and tx.amount > self.max_amount:
            return False
        return True

    def to_dict(self) -> dict:
        return {
            "categories": list(self.categories),
            "types": list(self.types),
            "minAmount": self.min_amount,
            "maxAmount": self.max_amount,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ReportFilters":
        """
        Build filters from their JSON shape.

        Raises:
            ValidationError: If ``data`` is not an object, or a list field
                holds a bare string (which would otherwise be split into
                characters).
        """
        data = data or {}
        if not isinstance(data, dict):
            raise ValidationError(f"filters must be an object, got {data!r}")
        lists = {}
        for key in ("categories", "types"):
            value = data.get(key) or ()
            if isinstance(value, str) or not isinstance(value, (list, tuple)):
                raise ValidationError(f"filters.{key} must be a list, got {value!r}")
            lists[key] = tuple(value)
        return cls(
            categories=lists["categories"],
            types=lists["types"],
            min_amount=data.get("minAmount"),
            max_amount=data.get("maxAmount"),
        )


@dataclass
class CustomReportDefinition:
    """
    A user-saved report.

    ``report_type`` is kept as the raw stored string so that values this
    code does not know (e.g. 'custom') survive loading and are reported as
    unsupported at execution time instead of failing the fetch.
    """
    user_id: str
    name: str
    report_type: str
    date_range: DateRange
    grouping: Optional[str] = None
    description: Optional[str] = None
    filters: ReportFilters = field(default_factory=ReportFilters)
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def validate(self) -> None:
        """Validate everything except report_type, which the executor owns."""
        if not self.name or not self.name.strip():
            raise ValidationError("Report name is required")
        self.date_range.validate()
        if self.grouping is not None and self.grouping not in GROUPINGS:
            raise ValidationError(
                f"Unsupported grouping {self.grouping!r}; expected one of {', '.join(GROUPINGS)}"
            )
        self.filters.validate()

    @classmethod
    def from_dict(cls, data: dict) -> "CustomReportDefinition":
        """Build a definition from the JSON shape used by API callers."""
        return cls(
            user_id=data.get("user_id"),
            name=data.get("name", ""),
            report_type=data.get("report_type"),
            date_range=DateRange.from_dict(data.get("date_range")),
            grouping=data.get("grouping"),
            description=data.get("description"),
            filters=ReportFilters.from_dict(data.get("filters")),
            id=data.get("id"),
        )
