from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Severity = Literal["critical", "serious", "moderate", "minor"]
FixPotential = Literal["high", "medium", "low"]
AutoFixable = Literal["yes", "no", "partial"]
RiskLevel = Literal["high", "moderate", "low"]
Audience = Literal["owner", "developer", "all"]


class CamelModel(BaseModel):
    """Entities are serialized with camelCase keys at the API boundary."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def dump(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# ── Raw diagnostic tree ──────────────────────────────────────────────────────
class EvidenceItem(CamelModel):
    node: str = "unknown"
    selector: Optional[str] = None
    explanation: Optional[str] = None


class CheckRecord(CamelModel):
    """One evaluated check from the raw tree, with loose fields made explicit."""

    id: str
    title: str = ""
    description: Optional[str] = None
    score: Optional[float] = None
    score_display_mode: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    @property
    def items(self) -> List[Any]:
        items = (self.details or {}).get("items")
        return items if isinstance(items, list) else []


# ── Derived entities ─────────────────────────────────────────────────────────
class FailedCheck(CamelModel):
    check_id: str
    title: str
    fail_count: int = 0


class ReducedCheck(CamelModel):
    """A check with its evidence already simplified; used by the developer path."""

    id: str
    title: str
    description: Optional[str] = None
    score: Optional[float] = None
    score_display_mode: Optional[str] = None
    fail_count: int = 0
    items: List[EvidenceItem] = Field(default_factory=list)


class CategorizedChecks(CamelModel):
    failed: List[ReducedCheck] = Field(default_factory=list)
    passed: List[ReducedCheck] = Field(default_factory=list)
    manual: List[ReducedCheck] = Field(default_factory=list)


class RuleMetadata(CamelModel):
    guideline_reference: str
    severity: Severity
    impact: str
    auto_fix_potential: FixPotential


class EnrichedIssue(CamelModel):
    rule: str
    guideline_reference: str
    severity: Severity
    failed_elements: int
    impact: str
    auto_fix_potential: FixPotential


class Bucket(CamelModel):
    bucket_name: str
    related_rules: List[str]
    total_failures: int
    highest_severity: Severity
    auto_fixable: AutoFixable


class PriorityBlock(CamelModel):
    bucket_name: str
    affected_elements: int
    human_impact: str
    automation: str


class Narrative(CamelModel):
    risk_level: RiskLevel
    total_issues: int
    total_buckets: int
    priorities: List[PriorityBlock] = Field(default_factory=list)
    text: str


# ── API ──────────────────────────────────────────────────────────────────────
class AuditRequest(BaseModel):
    url: str = Field(..., min_length=1)
    audience: Audience = "all"
    force: bool = False


class HealthOut(BaseModel):
    ok: bool
    service: str


class AuditResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    cached: bool
    cached_at: Optional[str] = None
    report: Dict[str, Any]


__all__ = [
    "AuditRequest",
    "AuditResponse",
    "Audience",
    "Bucket",
    "CategorizedChecks",
    "CheckRecord",
    "EnrichedIssue",
    "EvidenceItem",
    "FailedCheck",
    "HealthOut",
    "Narrative",
    "PriorityBlock",
    "ReducedCheck",
    "RuleMetadata",
]
