"""
Core Data Models for the Personal Ledger

These models define the schemas for everything the ledger stores and derives:
1. Assets and their dated value history
2. Cash transactions
3. Saved AI insights
4. Derived valuation snapshots (never stored)

DESIGN DECISION: Dates are calendar days (datetime.date). They serialize to
YYYY-MM-DD strings, which sort lexically in the same order as the dates.
Amounts are plain floats; the ledger makes no currency or rounding claims.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


def new_id() -> str:
    """Allocate a new identifier for a ledger record."""
    return str(uuid4())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AssetType(str, Enum):
    """
    Asset classification.

    Exactly one tag (LOAN) has liability semantics and counts
    negatively towards net worth.
    """
    CASH = "cash"
    SAVINGS = "savings"
    BOND = "bond"
    STOCK = "stock"
    CRYPTO = "crypto"
    CAR = "car"
    REAL_ESTATE = "real_estate"
    COMMODITY = "commodity"
    LOAN = "loan"


LIABILITY_TYPE = AssetType.LOAN

# Types whose value can be refreshed from the price oracle
MARKET_PRICED_TYPES = frozenset({AssetType.STOCK, AssetType.CRYPTO})

# Display ordering, liquid to illiquid, liabilities last
ASSET_TYPE_ORDER: list[AssetType] = [
    AssetType.CASH,
    AssetType.SAVINGS,
    AssetType.BOND,
    AssetType.STOCK,
    AssetType.CRYPTO,
    AssetType.CAR,
    AssetType.REAL_ESTATE,
    AssetType.COMMODITY,
    AssetType.LOAN,
]


class TransactionType(str, Enum):
    """Direction of a cash movement."""
    INCOME = "income"
    EXPENSE = "expense"


class TransactionCategory(str, Enum):
    """Supported transaction categories."""
    FOOD = "food"
    TRANSPORT = "transport"
    SHOPPING = "shopping"
    LEISURE = "leisure"
    HEALTH = "health"
    HOUSING = "housing"
    HOUSEHOLD = "household"
    SALARY = "salary"
    INVESTMENT = "investment"
    OTHER = "other"


# =============================================================================
# ASSET MODELS
# =============================================================================

class HistoryEntry(BaseModel):
    """One observed value of an asset on a calendar day."""

    date: date
    value: float = Field(allow_inf_nan=False)


class Asset(BaseModel):
    """
    One holding or liability.

    `history` holds at most one entry per date. `purchase_amount` and
    `current_value` are always set by the ledger; they are Optional only so
    that legacy stored records without them can still be loaded and valued.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: str = Field(
        default_factory=new_id,
        description="Unique asset identifier"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name"
    )
    type: AssetType = Field(
        ...,
        description="Asset classification"
    )

    # Values
    purchase_amount: Optional[float] = Field(
        default=None,
        allow_inf_nan=False,
        description="Original acquisition cost (immutable after creation)"
    )
    current_value: Optional[float] = Field(
        default=None,
        allow_inf_nan=False,
        description="Latest known value"
    )
    history: list[HistoryEntry] = Field(default_factory=list)

    # Lifecycle
    created_at: date = Field(
        ...,
        description="Day the asset entered existence"
    )
    deleted_at: Optional[date] = Field(
        default=None,
        description="Day the asset was retired (exclusive bound of its active window)"
    )
    last_updated: datetime = Field(
        default_factory=datetime.utcnow,
        description="Wall-clock time of the last value change"
    )

    # Market-linked fields
    ticker: Optional[str] = Field(default=None, max_length=30)
    quantity: Optional[float] = Field(default=None, allow_inf_nan=False)
    unit_price: Optional[float] = Field(default=None, allow_inf_nan=False)

    @property
    def is_liability(self) -> bool:
        return self.type == LIABILITY_TYPE

    @property
    def is_retired(self) -> bool:
        return self.deleted_at is not None

    def is_active_on(self, day: date) -> bool:
        """True iff created_at <= day < deleted_at (no deleted_at = unbounded)."""
        if day < self.created_at:
            return False
        return self.deleted_at is None or day < self.deleted_at

    def history_on(self, day: date) -> Optional[HistoryEntry]:
        """The snapshot recorded for exactly `day`, if any."""
        for entry in self.history:
            if entry.date == day:
                return entry
        return None


class ValueUpdate(BaseModel):
    """
    One entry of a bulk value update.

    Accepts `id` as an alias of `asset_id`, and the camelCase keys used by
    stored client data (`assetId`, `newValue`, `unitPrice`).
    """

    asset_id: str = Field(validation_alias=AliasChoices("asset_id", "id", "assetId"))
    new_value: float = Field(
        validation_alias=AliasChoices("new_value", "newValue"),
        allow_inf_nan=False,
    )
    unit_price: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("unit_price", "unitPrice"),
        allow_inf_nan=False,
    )
    quantity: Optional[float] = Field(default=None, allow_inf_nan=False)


class BulkUpdateFailure(BaseModel):
    """A bulk entry that could not be applied. `index` is its position in the request."""

    index: Optional[int] = None
    asset_id: Optional[str] = None
    error_type: str = Field(
        ...,
        pattern="^(invalid_input|not_found)$",
    )
    reason: str


class BulkUpdateResult(BaseModel):
    """Outcome of a bulk update: which entries landed and which did not."""

    as_of: date
    updated: list[Asset] = Field(default_factory=list)
    failed: list[BulkUpdateFailure] = Field(default_factory=list)

    @property
    def updated_ids(self) -> list[str]:
        return [asset.id for asset in self.updated]

    @property
    def failed_ids(self) -> list[Optional[str]]:
        return [failure.asset_id for failure in self.failed]


# =============================================================================
# TRANSACTION MODELS
# =============================================================================

class Transaction(BaseModel):
    """
    A dated cash movement.

    Immutable once created except through an explicit replace-by-id
    or delete.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    date: date
    amount: float = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        description="Always positive; direction comes from `type`"
    )
    type: TransactionType
    category: TransactionCategory = TransactionCategory.OTHER
    description: str = Field(default="", max_length=500)

    @property
    def signed_amount(self) -> float:
        return self.amount if self.type == TransactionType.INCOME else -self.amount


# =============================================================================
# INSIGHT & PERSISTENCE MODELS
# =============================================================================

class SpendingInsight(BaseModel):
    """An AI-written report over the ledger's computed numbers."""

    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    analysis: str
    asset_analysis: Optional[str] = None
    category_breakdown: Optional[str] = None
    suggestions: list[str] = Field(default_factory=list)
    saving_goal_advice: Optional[str] = None
    tips: str = ""


class LedgerState(BaseModel):
    """
    Everything stored for one user.

    This is the unit of persistence: every mutation re-submits the whole
    collection rather than an incremental patch.
    """

    transactions: list[Transaction] = Field(default_factory=list)
    assets: list[Asset] = Field(default_factory=list)
    insights: list[SpendingInsight] = Field(default_factory=list)
    last_updated: Optional[datetime] = None


class PriceQuote(BaseModel):
    """Current market price for a ticker, as returned by the price oracle."""

    ticker: str
    price: float = Field(ge=0, allow_inf_nan=False)
    currency: str = ""
    name: str = ""


# =============================================================================
# VALUATION MODELS (derived, never stored)
# =============================================================================

class ValuedAsset(Asset):
    """An asset annotated with the value attributable to a reference date."""

    context_value: float

    @property
    def gain(self) -> float:
        return self.context_value - (self.purchase_amount or 0.0)

    @property
    def gain_rate(self) -> float:
        """Change since purchase, in percent (0 when there is no purchase amount)."""
        if not self.purchase_amount or self.purchase_amount <= 0:
            return 0.0
        return self.gain / self.purchase_amount * 100


class ValuationSnapshot(BaseModel):
    """
    Net worth and per-asset values on one reference date.

    `assets` and `liabilities` are in display order. `degraded_asset_ids`
    lists assets whose value came from the purchase-amount fallback rather
    than a recorded snapshot. `reference_date` is None only when the
    requested day could not be read as a date.
    """

    reference_date: Optional[date] = None
    is_current_period: bool
    assets: list[ValuedAsset] = Field(default_factory=list)
    liabilities: list[ValuedAsset] = Field(default_factory=list)
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    net_worth: float = 0.0
    degraded_asset_ids: list[str] = Field(default_factory=list)

    @property
    def all_assets(self) -> list[ValuedAsset]:
        return [*self.assets, *self.liabilities]

    def breakdown_by_type(self) -> dict[AssetType, float]:
        """Total context value per asset type, omitting empty types."""
        totals: dict[AssetType, float] = {}
        for asset in self.all_assets:
            totals[asset.type] = totals.get(asset.type, 0.0) + asset.context_value
        return {
            asset_type: totals[asset_type]
            for asset_type in ASSET_TYPE_ORDER
            if totals.get(asset_type, 0.0) > 0
        }


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single integrity problem found in stored ledger data."""

    entity_id: Optional[str] = Field(
        default=None,
        description="Asset or transaction the issue belongs to"
    )
    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'duplicate_date', 'missing', 'out_of_window')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Everything the validator found. Nothing in the ledger is changed."""

    validated_at: datetime = Field(default_factory=datetime.utcnow)
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    def for_entity(self, entity_id: str) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.entity_id == entity_id]
