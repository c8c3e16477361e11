"""
Credit Report Data Model
========================
Read-only input contract for the credit report engine.

The aggregation layer builds a ReportData once; the engine never mutates it.
``check_integrity`` enforces the numeric invariants before any layout work:
a category total must equal the sum of its records, the grand total must
equal the sum of the categories, and the confidence tiers must add up to the
grand total.
"""

from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from report_errors import DataIntegrityError

# Rounding tolerance for monetary invariants (one cent)
TOLERANCE = 0.01


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RiskLevel(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class EntityInfo(FrozenModel):
    legal_name: str
    trade_name: Optional[str] = None
    tax_id: str = ""
    regime: Optional[str] = None


class Record(FrozenModel):
    """One traceable credit, tied to a fiscal document."""
    document_key: Optional[str] = None
    document_number: str
    issuer_id: str = ""
    issuer_name: str = ""
    issue_date: date
    item_code: str = ""
    operation_code: str = ""
    tax_situation_code: str = ""
    rate: Optional[float] = None
    confidence_level: ConfidenceLevel = ConfidenceLevel.MEDIUM
    credit_value: float
    recommended_action: str = ""
    document_value: Optional[float] = None


class Category(FrozenModel):
    name: str
    total_value: float
    legal_basis: str = ""
    legal_basis_description: Optional[str] = None
    risk_level: RiskLevel = RiskLevel.LOW
    records: List[Record] = Field(default_factory=list)


class ConfidenceTotals(FrozenModel):
    high: float = 0.0
    medium: float = 0.0
    low: float = 0.0

    def as_dict(self) -> Dict[ConfidenceLevel, float]:
        return {
            ConfidenceLevel.HIGH: self.high,
            ConfidenceLevel.MEDIUM: self.medium,
            ConfidenceLevel.LOW: self.low,
        }


class Totals(FrozenModel):
    grand_total: float
    by_confidence_tier: ConfidenceTotals
    annual_savings_min: Optional[float] = None
    annual_savings_max: Optional[float] = None


class Provenance(FrozenModel):
    documents_analyzed: int = 0
    suppliers_analyzed: Optional[int] = None
    rules_applied: int = 0


class ReportData(FrozenModel):
    report_id: Optional[str] = None
    period_start: date
    period_end: date
    subject: EntityInfo
    totals: Totals
    categories: List[Category] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    disclaimers: List[str] = Field(default_factory=list)
    provenance: Provenance = Field(default_factory=Provenance)

    @property
    def records(self) -> List[Record]:
        """Every record across all categories, in category order."""
        return [record for category in self.categories for record in category.records]

    @property
    def suppliers_analyzed(self) -> int:
        if self.provenance.suppliers_analyzed is not None:
            return self.provenance.suppliers_analyzed
        return len({record.issuer_id for record in self.records if record.issuer_id})


def _close(a: float, b: float) -> bool:
    return abs(a - b) <= TOLERANCE


def check_integrity(data: ReportData) -> None:
    """Raise DataIntegrityError on the first violated invariant."""
    for category in data.categories:
        records_sum = sum(record.credit_value for record in category.records)
        if not _close(category.total_value, records_sum):
            raise DataIntegrityError(
                "category-total",
                f"category '{category.name}' totals {category.total_value:.2f} "
                f"but its {len(category.records)} records sum to {records_sum:.2f}",
                reference=category.name,
            )

    categories_sum = sum(category.total_value for category in data.categories)
    if not _close(data.totals.grand_total, categories_sum):
        raise DataIntegrityError(
            "grand-total",
            f"grand total {data.totals.grand_total:.2f} differs from the "
            f"category sum {categories_sum:.2f}",
            reference=data.report_id,
        )

    tiers_sum = sum(data.totals.by_confidence_tier.as_dict().values())
    if not _close(data.totals.grand_total, tiers_sum):
        raise DataIntegrityError(
            "confidence-tiers",
            f"confidence tiers sum to {tiers_sum:.2f} but the grand total is "
            f"{data.totals.grand_total:.2f}",
            reference=data.report_id,
        )
