"""
Data Validation Module

Rule-based quality checks run on a snapshot before the pipeline starts.

Features:
- Null checks
- Uniqueness checks
- Range checks
- Referential integrity checks

ERROR-severity failures block the run with DataIntegrityError; WARNING
failures are logged and reported but do not block.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import polars as pl
import structlog

from coffee_expansion.data.snapshot import Snapshot
from coffee_expansion.exceptions import DataIntegrityError

logger = structlog.get_logger(__name__)

# Orphan ids quoted in failure details
MAX_SAMPLE_IDS = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Critical - blocks pipeline
    WARNING = "warning"  # Non-critical - logged but continues


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    @property
    def errors(self) -> List[ValidationCheck]:
        return [c for c in self.checks if not c.passed and c.severity == ValidationSeverity.ERROR]

    @property
    def warnings(self) -> List[ValidationCheck]:
        return [c for c in self.checks if not c.passed and c.severity == ValidationSeverity.WARNING]


class DataValidator:
    """
    Data validator with a chainable check suite.

    Example:
        validator = DataValidator("sales")
        validator.add_not_null_check("customer_id")
        validator.add_range_check("total", min_value=0)
        result = validator.validate(df)
    """

    def __init__(self, collection: str = "frame"):
        self.collection = collection
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    def _column_missing(self, name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
        return ValidationCheck(
            name=name,
            passed=False,
            severity=severity,
            message=f"Column '{column}' not found",
        )

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for null values in column"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"{self.collection}.not_null_{column}"
            if column not in df.columns:
                return self._column_missing(name, column, severity)

            null_count = df[column].null_count()
            total = len(df)
            passed = null_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {null_count} null values" if not passed else f"Column '{column}' has no null values",
                details={"null_count": null_count, "null_percentage": (null_count / total) * 100 if total > 0 else 0},
                failed_rows=null_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for uniqueness of column values"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"{self.collection}.unique_{column}"
            if column not in df.columns:
                return self._column_missing(name, column, severity)

            total = len(df)
            duplicates = df.filter(pl.col(column).is_duplicated())[column].unique().sort()
            duplicate_count = total - df[column].n_unique()
            passed = duplicate_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {duplicate_count} duplicate values" if not passed else f"Column '{column}' values are unique",
                details={"duplicate_count": duplicate_count, "sample_ids": duplicates.head(MAX_SAMPLE_IDS).to_list()},
                failed_rows=duplicate_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values within specified range; nulls are ignored"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"{self.collection}.range_{column}"
            if column not in df.columns:
                return self._column_missing(name, column, severity)

            conditions = []
            if min_value is not None:
                conditions.append(pl.col(column) < min_value)
            if max_value is not None:
                conditions.append(pl.col(column) > max_value)

            if not conditions:
                return ValidationCheck(
                    name=name,
                    passed=True,
                    severity=severity,
                    message="No range specified",
                )

            # Combine conditions with OR
            combined = conditions[0]
            for cond in conditions[1:]:
                combined = combined | cond

            out_of_range = df.filter(combined).height
            total = len(df)
            passed = out_of_range == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {out_of_range} values outside range [{min_value}, {max_value}]" if not passed else "All values in range",
                details={"min": min_value, "max": max_value, "out_of_range_count": out_of_range},
                failed_rows=out_of_range,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_non_negative_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values >= 0"""
        return self.add_range_check(column, min_value=0, severity=severity)

    def add_referential_integrity_check(
        self,
        column: str,
        reference_df: pl.DataFrame,
        reference_column: str,
        reference_name: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that every non-null value of column exists in the reference frame"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"{self.collection}.ref_integrity_{column}"
            if column not in df.columns:
                return self._column_missing(name, column, severity)

            references = reference_df.select(pl.col(reference_column).alias(column)).unique()
            orphans = (
                df.filter(pl.col(column).is_not_null())
                .join(references, on=column, how="anti")
            )
            orphan_ids = orphans[column].unique().sort().head(MAX_SAMPLE_IDS).to_list()
            total = len(df)
            passed = orphans.height == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=(
                    f"Column '{column}' has {orphans.height} rows referencing missing {reference_name} {orphan_ids}"
                    if not passed else "Referential integrity maintained"
                ),
                details={"orphan_count": orphans.height, "sample_ids": orphan_ids},
                failed_rows=orphans.height,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = _utcnow()
        results = [check_func(df) for check_func in self._checks]

        for result in results:
            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    message=result.message,
                    severity=result.severity.value,
                )

        return _summarize(results, started_at)


def _summarize(results: List[ValidationCheck], started_at: datetime) -> ValidationResult:
    passed_checks = sum(1 for r in results if r.passed)
    failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
    warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

    if failed_checks > 0:
        status = ValidationStatus.FAILED
    elif warning_count > 0:
        status = ValidationStatus.PARTIAL
    else:
        status = ValidationStatus.PASSED

    return ValidationResult(
        status=status,
        total_checks=len(results),
        passed_checks=passed_checks,
        failed_checks=failed_checks,
        warning_count=warning_count,
        checks=results,
        started_at=started_at,
        completed_at=_utcnow(),
    )


# Pre-built validators for the four collections
def create_cities_validator() -> DataValidator:
    """Validator for the city collection"""
    return (
        DataValidator("city")
        .add_not_null_check("city_id")
        .add_unique_check("city_id")
        .add_not_null_check("city_name")
        .add_non_negative_check("population")
        .add_non_negative_check("estimated_rent")
        # Missing scoring inputs are reported per city by the scorer
        .add_not_null_check("population", severity=ValidationSeverity.WARNING)
        .add_not_null_check("estimated_rent", severity=ValidationSeverity.WARNING)
    )


def create_customers_validator(cities: pl.DataFrame) -> DataValidator:
    """Validator for the customers collection"""
    return (
        DataValidator("customers")
        .add_not_null_check("customer_id")
        .add_unique_check("customer_id")
        .add_referential_integrity_check("city_id", cities, "city_id", "city")
    )


def create_products_validator() -> DataValidator:
    """Validator for the products collection"""
    return (
        DataValidator("products")
        .add_not_null_check("product_id")
        .add_unique_check("product_id")
        .add_not_null_check("price")
        .add_non_negative_check("price")
    )


def create_sales_validator(customers: pl.DataFrame, products: pl.DataFrame) -> DataValidator:
    """Validator for the sales collection"""
    return (
        DataValidator("sales")
        .add_not_null_check("sale_id")
        .add_unique_check("sale_id")
        .add_not_null_check("customer_id")
        .add_not_null_check("product_id")
        .add_not_null_check("total")
        .add_referential_integrity_check("customer_id", customers, "customer_id", "customer")
        .add_referential_integrity_check("product_id", products, "product_id", "product")
        .add_range_check("rating", min_value=1, max_value=5, severity=ValidationSeverity.WARNING)
    )


def validate_snapshot(snapshot: Snapshot, raise_on_error: bool = True) -> ValidationResult:
    """
    Run the full check suite over a snapshot.

    Args:
        snapshot: Snapshot to validate
        raise_on_error: Raise DataIntegrityError if any ERROR check fails

    Returns:
        ValidationResult combining the checks of all four collections

    Raises:
        DataIntegrityError: an ERROR-severity check failed
    """
    started_at = _utcnow()
    suites = [
        (create_cities_validator(), snapshot.cities),
        (create_customers_validator(snapshot.cities), snapshot.customers),
        (create_products_validator(), snapshot.products),
        (create_sales_validator(snapshot.customers, snapshot.products), snapshot.sales),
    ]

    checks: List[ValidationCheck] = []
    for validator, frame in suites:
        checks.extend(validator.validate(frame).checks)

    result = _summarize(checks, started_at)
    logger.info(
        f"Snapshot validation complete: {result.status.value}",
        passed=result.passed_checks,
        failed=result.failed_checks,
        warnings=result.warning_count,
    )

    if raise_on_error and result.errors:
        violations = [f"{c.name}: {c.message}" for c in result.errors]
        raise DataIntegrityError(
            f"Snapshot failed {len(violations)} integrity check(s): {violations[0]}",
            violations=violations,
        )

    return result
