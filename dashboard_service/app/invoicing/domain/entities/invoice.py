from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Mapping


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


@dataclass(frozen=True, slots=True)
class Invoice:
    id: str
    customer_id: str
    amount: int
    status: InvoiceStatus
    date: date

    @staticmethod
    def _parse_date(value: Any) -> date:
        if isinstance(value, date):
            return value
        return date.fromisoformat(str(value)[:10])

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Invoice":
        return cls(
            id=str(record["id"]),
            customer_id=str(record["customer_id"]),
            amount=int(record["amount"]),
            status=InvoiceStatus(record["status"]),
            date=cls._parse_date(record["date"]),
        )
