"""
Pipeline Error Taxonomy

Fatal errors abort the run at the stage that raised them. MissingDataError is
per-city: the scorer collects it as a warning and keeps going.
"""

from typing import Any, Dict, List, Optional


class ExpansionAnalyticsError(Exception):
    """Base class for all pipeline errors"""

    stage: str = "pipeline"

    def to_dict(self) -> Dict[str, Any]:
        """Serializable error payload"""
        return {"error": type(self).__name__, "stage": self.stage, "message": str(self)}


class SchemaError(ExpansionAnalyticsError):
    """An input collection lacks required columns or has unusable types"""

    stage = "ingest"

    def __init__(self, collection: str, problems: List[str]):
        self.collection = collection
        self.problems = list(problems)
        super().__init__(f"Collection '{collection}' is malformed: {'; '.join(self.problems)}")


class DataIntegrityError(ExpansionAnalyticsError):
    """Snapshot violates referential integrity or a blocking quality rule"""

    stage = "ingest"

    def __init__(self, message: str, violations: Optional[List[str]] = None):
        self.violations = list(violations or [])
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["violations"] = self.violations
        return payload


class MissingDataError(ExpansionAnalyticsError):
    """A city lacks a scoring input (population or estimated rent)"""

    stage = "score"

    def __init__(self, city_id: int, city_name: str, missing_fields: List[str]):
        self.city_id = city_id
        self.city_name = city_name
        self.missing_fields = list(missing_fields)
        super().__init__(
            f"City '{city_name}' (id={city_id}) is missing {', '.join(self.missing_fields)}; excluded from ranking"
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update(city_id=self.city_id, city_name=self.city_name, missing_fields=self.missing_fields)
        return payload


class InsufficientDataError(ExpansionAnalyticsError):
    """Fewer validly scored cities than requested"""

    stage = "rank"

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Requested top {requested} cities but only {available} have valid scores"
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update(requested=self.requested, available=self.available)
        return payload
