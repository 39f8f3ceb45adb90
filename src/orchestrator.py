"""
Main Orchestrator for the Personal Ledger

This module ties together all the components and defines the
end-to-end flows for one user's ledger:
1. Load (storage → validate → in-memory ledger)
2. Mutate (ledger/book → whole-collection save → audit)
3. Query (valuation engine and reports over the in-memory state)
4. Advise (financial context → insight agent)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The ledger core never does I/O; only this layer talks to storage
- Every mutation re-submits the WHOLE collection, never a patch
- Every mutation is audited
- The AI only ever sees engine-computed numbers

A failed save does not roll back the in-memory change. The session
records the failure in `sync_error` and re-raises, so the caller can
show it and retry with `sync()`.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any, Optional, Union

import structlog
from pydantic import BaseModel

from src.agents import ChatTurn, InsightAgent, fallback_insight
from src.audit import AuditLogger, create_correlation_id
from src.clock import DateLike, ReferenceClock, SystemClock, to_date
from src.config import get_settings
from src.ledger import AssetLedger, TransactionBook
from src.models.audit import AuditEventType
from src.models.ledger import (
    Asset,
    AssetType,
    BulkUpdateResult,
    LedgerState,
    SpendingInsight,
    Transaction,
    TransactionCategory,
    TransactionType,
    ValidationResult,
    ValuationSnapshot,
    ValueUpdate,
)
from src.reports import (
    FinancialContext,
    PeriodTotals,
    budget_usage_percent,
    build_financial_context,
    period_totals,
)
from src.services.market import (
    PriceOracleInterface,
    YahooFinancePriceOracle,
    build_price_updates,
)
from src.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    LedgerStorageInterface,
    StorageError,
)
from src.validation import LedgerValidator
from src.valuation import snapshot_at, snapshot_for_day, snapshot_for_month


logger = structlog.get_logger(__name__)


class LedgerSummary(BaseModel):
    """Dashboard numbers: this month, this year and today's net worth."""

    today: date
    month: PeriodTotals
    year: PeriodTotals
    snapshot: ValuationSnapshot
    monthly_budget: float
    budget_usage_percent: int


class LedgerSession:
    """
    One user's ledger, loaded into memory.

    Usage:
        session = LedgerSession("user-1", storage, clock=SystemClock())
        await session.load()
        asset = await session.create_asset("Brokerage", "stock", 1000, 1000)
        snapshot = await session.snapshot_for_month(2024, 3)
    """

    def __init__(
        self,
        user_id: str,
        storage: LedgerStorageInterface,
        clock: Optional[ReferenceClock] = None,
        audit_logger: Optional[AuditLogger] = None,
        price_oracle: Optional[PriceOracleInterface] = None,
        insight_agent: Optional[InsightAgent] = None,
        max_saved_insights: int = 50,
        recent_transactions_limit: int = 20,
        monthly_budget: float = 2000000.0,
    ):
        self.user_id = user_id
        self._storage = storage
        self._clock = clock or SystemClock()
        self._audit_logger = audit_logger or AuditLogger(user_id=user_id)
        self._price_oracle = price_oracle
        self._insight_agent = insight_agent
        self._max_saved_insights = max_saved_insights
        self._recent_limit = recent_transactions_limit
        self._monthly_budget = monthly_budget

        self._assets = AssetLedger(clock=self._clock)
        self._book = TransactionBook()
        self._insights: list[SpendingInsight] = []

        self.sync_error: Optional[str] = None
        self.validation: Optional[ValidationResult] = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def clock(self) -> ReferenceClock:
        return self._clock

    @property
    def assets(self) -> list[Asset]:
        return self._assets.assets

    @property
    def transactions(self) -> list[Transaction]:
        return self._book.transactions

    @property
    def insights(self) -> list[SpendingInsight]:
        return list(self._insights)

    @property
    def state(self) -> LedgerState:
        """The whole collection, as it is persisted."""
        return LedgerState(
            transactions=self._book.transactions,
            assets=self._assets.assets,
            insights=list(self._insights),
        )

    async def load(self) -> LedgerState:
        """
        Load the user's ledger from storage and check its integrity.

        Validation findings are kept in `validation`; nothing is fixed.

        Raises:
            StorageError: the stored ledger could not be read
        """
        try:
            state = await self._storage.load_ledger(self.user_id)
        except StorageError as e:
            await self._audit_logger.log_error(
                error_type="ledger_load_failed",
                error_message=str(e),
                details={"user_id": self.user_id},
            )
            raise

        self._assets = AssetLedger(state.assets, clock=self._clock)
        self._book = TransactionBook(state.transactions)
        self._insights = list(state.insights)
        self.validation = LedgerValidator().validate(state)
        self.sync_error = None

        await self._audit_logger.log_ledger_loaded(
            user_id=self.user_id,
            asset_count=len(state.assets),
            transaction_count=len(state.transactions),
            issue_count=len(self.validation.issues),
        )
        return state

    async def sync(self) -> bool:
        """
        Persist the whole collection.

        Raises:
            StorageError: save failed; `sync_error` holds the message
        """
        state = self.state
        try:
            await self._storage.save_ledger(self.user_id, state)
        except StorageError as e:
            self.sync_error = str(e)
            await self._audit_logger.log_sync_failed(self.user_id, str(e))
            raise

        self.sync_error = None
        await self._audit_logger.log_ledger_synced(
            user_id=self.user_id,
            asset_count=len(state.assets),
            transaction_count=len(state.transactions),
        )
        return True

    # -------------------------------------------------------------------------
    # Asset mutations
    # -------------------------------------------------------------------------

    async def create_asset(
        self,
        name: str,
        asset_type: Union[AssetType, str],
        purchase_amount: Any,
        initial_value: Any,
        as_of: Optional[DateLike] = None,
        ticker: Optional[str] = None,
        quantity: Any = None,
        unit_price: Any = None,
    ) -> Asset:
        asset = self._assets.create_asset(
            name,
            asset_type,
            purchase_amount,
            initial_value,
            as_of=as_of,
            ticker=ticker,
            quantity=quantity,
            unit_price=unit_price,
        )
        await self.sync()
        await self._audit_logger.log_asset_created(asset)
        return asset

    async def record_value(
        self,
        asset_id: str,
        new_value: Any,
        as_of: Optional[DateLike] = None,
        unit_price: Any = None,
        quantity: Any = None,
    ) -> Asset:
        entries_before = len(self._assets.get(asset_id).history)
        asset = self._assets.record_value(
            asset_id,
            new_value,
            as_of=as_of,
            unit_price=unit_price,
            quantity=quantity,
        )
        await self.sync()
        await self._audit_logger.log_value_recorded(
            asset,
            as_of=to_date(as_of, default=self._clock.today()),
            overwrote_same_day=len(asset.history) == entries_before,
        )
        return asset

    async def record_values_bulk(
        self,
        updates: Iterable[Union[ValueUpdate, Mapping]],
        as_of: Optional[DateLike] = None,
    ) -> BulkUpdateResult:
        """Apply a batch of value updates; rejected entries are reported, not raised."""
        result = self._assets.record_values_bulk(updates, as_of=as_of)
        await self._finish_bulk(result)
        return result

    async def retire_asset(
        self,
        asset_id: str,
        deletion_date: Optional[DateLike] = None,
    ) -> Asset:
        asset = self._assets.retire_asset(asset_id, deletion_date)
        await self.sync()
        await self._audit_logger.log_asset_retired(asset)
        return asset

    async def refresh_market_prices(self) -> BulkUpdateResult:
        """
        Re-value active stock/crypto assets from the price oracle.

        All prices land as one bulk update stamped today. Tickers the
        oracle cannot price are reported in `failed`.
        """
        today = self._clock.today()
        if self._price_oracle is None:
            logger.warning("price_refresh_skipped", reason="no price oracle configured")
            return BulkUpdateResult(as_of=today)

        plan = await build_price_updates(self._assets.assets, self._price_oracle, today)
        result = self._assets.record_values_bulk(plan.updates, as_of=today)
        result.failed.extend(plan.unpriced)
        await self._finish_bulk(result)
        return result

    async def _finish_bulk(self, result: BulkUpdateResult) -> None:
        if result.updated:
            await self.sync()
        if result.updated or result.failed:
            await self._audit_logger.log_bulk_update(result, create_correlation_id())

    # -------------------------------------------------------------------------
    # Transaction mutations
    # -------------------------------------------------------------------------

    async def add_transaction(
        self,
        date: DateLike,
        amount: Any,
        transaction_type: Union[TransactionType, str],
        category: Union[TransactionCategory, str] = TransactionCategory.OTHER,
        description: str = "",
    ) -> Transaction:
        transaction = self._book.add(date, amount, transaction_type, category, description)
        await self.sync()
        await self._audit_logger.log_transaction(AuditEventType.TRANSACTION_ADDED, transaction)
        return transaction

    async def update_transaction(
        self,
        transaction_id: str,
        date: DateLike,
        amount: Any,
        transaction_type: Union[TransactionType, str],
        category: Union[TransactionCategory, str] = TransactionCategory.OTHER,
        description: str = "",
    ) -> Transaction:
        transaction = self._book.update(
            transaction_id, date, amount, transaction_type, category, description
        )
        await self.sync()
        await self._audit_logger.log_transaction(AuditEventType.TRANSACTION_UPDATED, transaction)
        return transaction

    async def delete_transaction(self, transaction_id: str) -> Transaction:
        removed = self._book.delete(transaction_id)
        await self.sync()
        await self._audit_logger.log_transaction(AuditEventType.TRANSACTION_DELETED, removed)
        return removed

    # -------------------------------------------------------------------------
    # Insights
    # -------------------------------------------------------------------------

    def financial_context(self) -> FinancialContext:
        return build_financial_context(
            self._book.transactions,
            self._assets.assets,
            self._clock,
            recent_limit=self._recent_limit,
        )

    async def generate_insight(self) -> SpendingInsight:
        """Ask the insight agent for a report. The result is not saved."""
        if self._insight_agent is None:
            logger.warning("insight_skipped", reason="no insight agent configured")
            return fallback_insight()
        return await self._insight_agent.generate_insight(self.financial_context())

    async def quick_tip(self) -> Optional[str]:
        if self._insight_agent is None:
            return None
        return await self._insight_agent.quick_tip(self._book.transactions)

    async def chat(self, message: str, history: Optional[Sequence[ChatTurn]] = None) -> str:
        if self._insight_agent is None:
            return "The AI advisor is not configured."
        return await self._insight_agent.chat(self.financial_context(), message, history)

    async def save_insight(self, insight: SpendingInsight) -> SpendingInsight:
        """Keep a report, newest first, dropping the oldest past the cap."""
        self._insights.insert(0, insight)
        del self._insights[self._max_saved_insights:]
        await self.sync()
        await self._audit_logger.log_insight_saved(insight.id)
        return insight

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def snapshot_for_month(self, year: int, month: int) -> ValuationSnapshot:
        """Month view: live values for the current month, else month-end history."""
        snapshot = snapshot_for_month(self._assets.assets, year, month, self._clock)
        await self._audit_degraded(snapshot)
        return snapshot

    async def snapshot_for_day(self, day: DateLike) -> ValuationSnapshot:
        """Calendar view: net worth on one day."""
        snapshot = snapshot_for_day(self._assets.assets, day, self._clock)
        await self._audit_degraded(snapshot)
        return snapshot

    async def _audit_degraded(self, snapshot: ValuationSnapshot) -> None:
        if snapshot.degraded_asset_ids:
            await self._audit_logger.log_valuation_degraded(
                snapshot.degraded_asset_ids,
                snapshot.reference_date,
            )

    def summary(self) -> LedgerSummary:
        """Numbers for the dashboard cards, all as of today."""
        today = self._clock.today()
        transactions = self._book.transactions
        month = period_totals(transactions, today.year, today.month)
        return LedgerSummary(
            today=today,
            month=month,
            year=period_totals(transactions, today.year),
            snapshot=snapshot_at(self._assets.assets, today, is_current_period=True),
            monthly_budget=self._monthly_budget,
            budget_usage_percent=budget_usage_percent(month.expense, self._monthly_budget),
        )


def create_app_components(
    user_id: str,
    use_storage: bool = True,
) -> LedgerSession:
    """
    Factory function to create a ledger session from settings.

    Args:
        user_id: Owner of the ledger
        use_storage: Whether to use the configured storage backend.
                    Set to False for an in-memory session.

    Returns:
        An unloaded LedgerSession (call `await session.load()`)
    """
    settings = get_settings()
    app_settings = settings.app

    ledger_storage: LedgerStorageInterface = InMemoryLedgerStorage()
    audit_logger = AuditLogger(user_id=user_id)

    if use_storage and app_settings.storage_backend == "json":
        ledger_storage = JsonFileLedgerStorage(app_settings.json_path)
    elif use_storage and app_settings.storage_backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient(settings.google_sheets)
            ledger_storage = GoogleSheetsLedgerStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client), user_id=user_id)
        except ValueError as e:
            # Sheets not configured - fall back to the local file
            logger.warning("storage_not_configured", backend="google_sheets", error=str(e))
            ledger_storage = JsonFileLedgerStorage(app_settings.json_path)

    price_oracle = None
    market_settings = settings.market_data
    if market_settings.enabled:
        price_oracle = YahooFinancePriceOracle(max_retries=market_settings.max_retries)

    insight_agent = None
    try:
        insight_agent = InsightAgent(settings.gemini)
    except ValueError as e:
        logger.warning("insight_agent_not_configured", error=str(e))

    return LedgerSession(
        user_id=user_id,
        storage=ledger_storage,
        clock=SystemClock(app_settings.timezone),
        audit_logger=audit_logger,
        price_oracle=price_oracle,
        insight_agent=insight_agent,
        max_saved_insights=app_settings.max_saved_insights,
        recent_transactions_limit=app_settings.recent_transactions_limit,
        monthly_budget=app_settings.monthly_budget,
    )
