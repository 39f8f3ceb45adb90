"""
Asset Ledger

Owns the canonical asset collection and the merge rules for its history.

HISTORY MERGE RULE:
- Writing a value for a day that already has a snapshot overwrites that
  snapshot in place. Re-applying the same update never grows the log.
- Writing a value for a new day inserts a snapshot, keeping the log
  ordered by date.
- current_value and last_updated change on every write, whichever branch
  was taken.

Assets are replaced, never mutated in place: every write stores a new
model copy, so snapshots handed out earlier keep their values.
Retirement only bounds the active window; history is never removed.

The ledger is synchronous and does no I/O. Callers persist the whole
collection (`assets`) after each mutation.
"""

import math
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any, Optional, Union

import structlog
from pydantic import ValidationError

from src.clock import DateLike, ReferenceClock, SystemClock, to_date
from src.ledger.errors import AssetNotFoundError, InvalidInputError, LedgerError
from src.models.ledger import (
    Asset,
    AssetType,
    BulkUpdateFailure,
    BulkUpdateResult,
    HistoryEntry,
    ValueUpdate,
)


logger = structlog.get_logger(__name__)


def _require_number(value: Any, field: str) -> float:
    """Coerce a required numeric input, rejecting blanks, bools and NaN."""
    if value is None or isinstance(value, bool):
        raise InvalidInputError(field, "a number is required")
    if isinstance(value, str) and not value.strip():
        raise InvalidInputError(field, "a number is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(field, f"not a number: {value!r}")
    if not math.isfinite(number):
        raise InvalidInputError(field, f"not a finite number: {value!r}")
    return number


def _optional_number(value: Any, field: str) -> Optional[float]:
    if value is None:
        return None
    return _require_number(value, field)


def _raw_asset_id(raw: Any) -> Optional[str]:
    if isinstance(raw, ValueUpdate):
        return raw.asset_id
    if isinstance(raw, Mapping):
        asset_id = next(
            (raw[key] for key in ("asset_id", "id", "assetId") if raw.get(key) is not None),
            None,
        )
        return str(asset_id) if asset_id is not None else None
    return None


class AssetLedger:
    """
    The mutable asset collection.

    Usage:
        ledger = AssetLedger(state.assets, clock=clock)
        asset = ledger.create_asset("Brokerage", AssetType.STOCK, 1000, 1000)
        ledger.record_value(asset.id, 1200)
        state.assets = ledger.assets
    """

    def __init__(
        self,
        assets: Optional[Iterable[Asset]] = None,
        clock: Optional[ReferenceClock] = None,
    ):
        self._assets: list[Asset] = list(assets or [])
        self._clock = clock or SystemClock()

    @property
    def assets(self) -> list[Asset]:
        """The full collection, retired assets included, newest first."""
        return list(self._assets)

    def __len__(self) -> int:
        return len(self._assets)

    def get(self, asset_id: str) -> Asset:
        return self._assets[self._index_of(asset_id)]

    def active_assets(self, day: Optional[DateLike] = None) -> list[Asset]:
        """Assets whose active window contains `day` (default: today)."""
        on = self._resolve_day(day)
        return [asset for asset in self._assets if asset.is_active_on(on)]

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create_asset(
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
        """
        Add a new asset seeded with a single history snapshot.

        Raises:
            InvalidInputError: missing or non-numeric amounts, bad date,
                unknown type. The collection is left untouched.
        """
        purchase = _require_number(purchase_amount, "purchase_amount")
        initial = _require_number(initial_value, "initial_value")
        qty = _optional_number(quantity, "quantity")
        price = _optional_number(unit_price, "unit_price")
        day = self._resolve_day(as_of)

        try:
            asset = Asset(
                name=name,
                type=asset_type,
                purchase_amount=purchase,
                current_value=initial,
                history=[HistoryEntry(date=day, value=initial)],
                created_at=day,
                deleted_at=None,
                last_updated=self._clock.now(),
                ticker=ticker or None,
                quantity=qty,
                unit_price=price,
            )
        except ValidationError as e:
            raise InvalidInputError.from_validation_error(e)

        self._assets.insert(0, asset)
        logger.info(
            "asset_created",
            asset_id=asset.id,
            asset_type=asset.type.value,
            initial_value=initial,
            as_of=day.isoformat(),
        )
        return asset

    def record_value(
        self,
        asset_id: str,
        new_value: Any,
        as_of: Optional[DateLike] = None,
        unit_price: Any = None,
        quantity: Any = None,
    ) -> Asset:
        """
        Record an observed value for an asset on a day (default: today).

        unit_price and quantity are partial updates: None keeps the
        stored value.

        Raises:
            AssetNotFoundError: unknown asset id
            InvalidInputError: non-numeric value or bad date
        """
        index = self._index_of(asset_id)
        value = _require_number(new_value, "new_value")
        price = _optional_number(unit_price, "unit_price")
        qty = _optional_number(quantity, "quantity")
        day = self._resolve_day(as_of)

        updated, overwrote = self._merge_value(self._assets[index], value, day, price, qty)
        self._assets[index] = updated
        logger.info(
            "asset_value_recorded",
            asset_id=asset_id,
            new_value=value,
            as_of=day.isoformat(),
            overwrote_same_day=overwrote,
        )
        return updated

    def record_values_bulk(
        self,
        updates: Iterable[Union[ValueUpdate, Mapping]],
        as_of: Optional[DateLike] = None,
    ) -> BulkUpdateResult:
        """
        Apply many value updates stamped with the same day.

        Entries are independent: a bad entry is reported in `failed` and
        the rest are still applied. Two entries for the same asset apply
        in order, so the later one wins.
        """
        day = self._resolve_day(as_of)
        result = BulkUpdateResult(as_of=day)
        updated_by_id: dict[str, Asset] = {}

        for index, raw in enumerate(updates):
            try:
                update = raw if isinstance(raw, ValueUpdate) else ValueUpdate.model_validate(raw)
            except ValidationError as e:
                failure = InvalidInputError.from_validation_error(e)
                result.failed.append(BulkUpdateFailure(
                    index=index,
                    asset_id=_raw_asset_id(raw),
                    error_type=failure.error_type,
                    reason=str(failure),
                ))
                continue

            try:
                asset = self.record_value(
                    update.asset_id,
                    update.new_value,
                    as_of=day,
                    unit_price=update.unit_price,
                    quantity=update.quantity,
                )
            except LedgerError as e:
                result.failed.append(BulkUpdateFailure(
                    index=index,
                    asset_id=update.asset_id,
                    error_type=e.error_type,
                    reason=str(e),
                ))
                continue

            updated_by_id[asset.id] = asset

        result.updated = list(updated_by_id.values())
        if result.failed:
            logger.warning(
                "bulk_update_partial",
                as_of=day.isoformat(),
                updated=len(result.updated),
                failed=len(result.failed),
            )
        return result

    def retire_asset(
        self,
        asset_id: str,
        deletion_date: Optional[DateLike] = None,
    ) -> Asset:
        """
        Logically delete an asset as of a day (default: today).

        The asset stays in the collection with its history, so valuations
        for earlier days still see it.

        Raises:
            AssetNotFoundError: unknown asset id
            InvalidInputError: malformed date
        """
        index = self._index_of(asset_id)
        day = self._resolve_day(deletion_date)

        retired = self._assets[index].model_copy(update={"deleted_at": day})
        self._assets[index] = retired
        logger.info("asset_retired", asset_id=asset_id, deleted_at=day.isoformat())
        return retired

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _index_of(self, asset_id: str) -> int:
        for index, asset in enumerate(self._assets):
            if asset.id == asset_id:
                return index
        raise AssetNotFoundError(asset_id)

    def _resolve_day(self, value: Optional[DateLike]) -> date:
        try:
            return to_date(value, default=self._clock.today())
        except (TypeError, ValueError) as e:
            raise InvalidInputError("date", str(e))

    def _merge_value(
        self,
        asset: Asset,
        value: float,
        day: date,
        unit_price: Optional[float],
        quantity: Optional[float],
    ) -> tuple[Asset, bool]:
        """Overwrite the same-day snapshot or insert a new one in date order."""
        history = list(asset.history)
        overwrote = False

        for index, entry in enumerate(history):
            if entry.date == day:
                history[index] = HistoryEntry(date=day, value=value)
                overwrote = True
                break
        else:
            position = len(history)
            for index, entry in enumerate(history):
                if entry.date > day:
                    position = index
                    break
            history.insert(position, HistoryEntry(date=day, value=value))

        changes: dict[str, Any] = {
            "current_value": value,
            "history": history,
            "last_updated": self._clock.now(),
        }
        if unit_price is not None:
            changes["unit_price"] = unit_price
        if quantity is not None:
            changes["quantity"] = quantity

        return asset.model_copy(update=changes), overwrote
