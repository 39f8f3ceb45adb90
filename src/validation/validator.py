"""
Ledger Integrity Validation

DESIGN DECISION: The ledger's own mutators keep history well-formed, but
stored data can come from older versions, hand edits or another client.
This validator checks loaded data in two passes:

PASS 1 - RECORD CHECKS (per asset):
- Missing purchase amount or current value
- Duplicate history dates
- History out of date order
- History dated before the asset existed
- Retirement date not after creation date

PASS 2 - COLLECTION CHECKS:
- Duplicate asset ids
- Duplicate transaction ids

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review. The valuation engine still produces
numbers for flawed data; these findings say how far to trust them.
"""

from collections import Counter
from collections.abc import Iterable

import structlog

from src.models.ledger import (
    Asset,
    LedgerState,
    ValidationIssue,
    ValidationResult,
)


logger = structlog.get_logger(__name__)


class LedgerValidator:
    """
    Checks a loaded LedgerState for integrity problems.

    Usage:
        result = LedgerValidator().validate(state)
        if result.has_errors:
            ...
    """

    def _check_asset(self, asset: Asset) -> list[ValidationIssue]:
        """Pass 1: problems inside a single asset record."""
        issues = []

        for field in ("purchase_amount", "current_value"):
            if getattr(asset, field) is None:
                issues.append(ValidationIssue(
                    entity_id=asset.id,
                    field=field,
                    issue_type="missing",
                    message=f"{asset.name}: {field.replace('_', ' ')} is missing and will be valued as 0",
                    severity="warning",
                    suggested_fix="Record a value for this asset",
                ))

        dates = [entry.date for entry in asset.history]

        duplicates = sorted(day for day, count in Counter(dates).items() if count > 1)
        for day in duplicates:
            issues.append(ValidationIssue(
                entity_id=asset.id,
                field="history",
                issue_type="duplicate_date",
                message=f"{asset.name}: more than one snapshot on {day.isoformat()}",
                severity="error",
                suggested_fix="Keep a single value for that day",
            ))

        if dates != sorted(dates):
            issues.append(ValidationIssue(
                entity_id=asset.id,
                field="history",
                issue_type="unsorted",
                message=f"{asset.name}: history is not in date order",
                severity="info",
            ))

        early = [day for day in dates if day < asset.created_at]
        if early:
            issues.append(ValidationIssue(
                entity_id=asset.id,
                field="history",
                issue_type="before_creation",
                message=(
                    f"{asset.name}: {len(early)} snapshot(s) dated before "
                    f"creation on {asset.created_at.isoformat()}"
                ),
                severity="warning",
                suggested_fix="Check the creation date of this asset",
            ))

        if asset.deleted_at is not None and asset.deleted_at <= asset.created_at:
            issues.append(ValidationIssue(
                entity_id=asset.id,
                field="deleted_at",
                issue_type="empty_window",
                message=f"{asset.name}: retired on or before its creation date and never active",
                severity="warning",
            ))

        return issues

    def _check_unique_ids(self, ids: Iterable[str], field: str) -> list[ValidationIssue]:
        """Pass 2: ids must be unique within a collection."""
        issues = []
        for entity_id, count in Counter(ids).items():
            if count > 1:
                issues.append(ValidationIssue(
                    entity_id=entity_id,
                    field=field,
                    issue_type="duplicate_id",
                    message=f"Id {entity_id} appears {count} times in {field}",
                    severity="error",
                    suggested_fix="Mutations by id will only reach the first record",
                ))
        return issues

    def validate(self, state: LedgerState) -> ValidationResult:
        """
        Run both passes over the stored ledger.

        Returns:
            ValidationResult with all issues found
        """
        issues: list[ValidationIssue] = []

        for asset in state.assets:
            issues.extend(self._check_asset(asset))

        issues.extend(self._check_unique_ids((a.id for a in state.assets), "assets"))
        issues.extend(
            self._check_unique_ids((t.id for t in state.transactions), "transactions")
        )

        result = ValidationResult(issues=issues)
        if issues:
            logger.warning(
                "ledger_validation_issues",
                issue_count=len(issues),
                error_count=result.error_count,
            )
        return result

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show to non-technical users.
        """
        if not result.issues:
            return "✅ Ledger data looks consistent."

        lines = []

        errors = [issue for issue in result.issues if issue.severity == "error"]
        if errors:
            lines.append("❌ Some records need attention:")
            for issue in errors:
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
