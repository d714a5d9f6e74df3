"""
Domain-specific exceptions for connectors and sync jobs.
"""

from typing import List

from substrate_api.shared.exceptions import (
    ConflictError,
    NotFoundError,
    RequestValidationError,
)


class ConnectorNotFoundError(NotFoundError):
    def __init__(self, connector_id: str) -> None:
        super().__init__(f"Connector not found: {connector_id}")


class ConnectorDefinitionNotFoundError(NotFoundError):
    def __init__(self, definition_id: str) -> None:
        super().__init__(f"Connector definition not found: {definition_id}")


class SyncJobNotFoundError(NotFoundError):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"Sync job not found: {job_id}")


class ConnectorLimitReachedError(ConflictError):
    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Connector limit reached: plan allows {limit} connectors per project",
            details={"maxConnectorsPerProject": limit},
        )


class MissingCredentialsError(RequestValidationError):
    def __init__(self, missing: List[str]) -> None:
        super().__init__(
            f"Missing credentials: {', '.join(missing)}", details={"missing": missing}
        )


class SyncIntervalError(RequestValidationError):
    def __init__(self, minimum: int, maximum: int) -> None:
        super().__init__(
            f"Sync interval must be between {minimum} and {maximum} minutes"
        )
