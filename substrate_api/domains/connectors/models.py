# substrate_api/domains/connectors/models.py
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from substrate_api.core.entities import CamelModel, InstalledConnector


class Publisher(CamelModel):
    name: str
    verified: bool = False


class ConnectorCapability(CamelModel):
    type: Literal["entities", "relationships", "events", "metrics"]
    entity_types: List[str] = Field(default_factory=list)
    description: Optional[str] = None


class AuthRequirement(CamelModel):
    type: Literal["token", "basic", "oauth2", "none"]
    required: bool = True
    scopes: List[str] = Field(default_factory=list)
    # Credential fields that must be supplied at install time
    required_fields: List[str] = Field(default_factory=list)


class SyncCapabilities(CamelModel):
    supports_realtime: bool = False
    supports_webhook: bool = False
    default_interval_minutes: int = 60
    min_interval_minutes: int = 1
    max_interval_minutes: int = 1440


class ConnectorDefinition(CamelModel):
    id: str
    name: str
    description: str
    category: str
    version: str
    icon: str
    publisher: Publisher
    capabilities: List[ConnectorCapability]
    auth: AuthRequirement
    sync: SyncCapabilities
    tags: List[str] = Field(default_factory=list)
    documentation_url: Optional[str] = None
    install_count: int = 0
    rating: float = 0.0
    review_count: int = 0

    @property
    def entity_types(self) -> List[str]:
        return [
            entity_type
            for capability in self.capabilities
            if capability.type == "entities"
            for entity_type in capability.entity_types
        ]


class ConnectorCategory(CamelModel):
    id: str
    name: str
    description: str
    icon: str


class InstalledConnectorResponse(InstalledConnector):
    definition: Optional[ConnectorDefinition] = None


class HealthCheck(CamelModel):
    name: str
    status: Literal["pass", "fail", "warn"]
    message: Optional[str] = None
    response_time_ms: Optional[int] = None


class ConnectorHealth(CamelModel):
    connector_id: str
    status: Literal["healthy", "degraded", "unhealthy"]
    last_check_at: datetime
    checks: List[HealthCheck]


# Requests


class _RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SyncConfigUpdate(_RequestModel):
    enabled: Optional[bool] = None
    interval_minutes: Optional[int] = Field(default=None, ge=1)
    realtime_enabled: Optional[bool] = None
    webhook_configured: Optional[bool] = None
    entity_types: Optional[List[str]] = None


class InstallConnectorRequest(_RequestModel):
    project_id: str
    definition_id: str
    name: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)
    credentials: Dict[str, Any] = Field(default_factory=dict)
    sync_config: Optional[SyncConfigUpdate] = None


class UpdateConnectorRequest(_RequestModel):
    name: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    sync_config: Optional[SyncConfigUpdate] = None
    expected_revision: Optional[int] = None


class TriggerSyncRequest(_RequestModel):
    connector_id: Optional[str] = None
    project_id: Optional[str] = None

    @model_validator(mode="after")
    def validate_target(self) -> "TriggerSyncRequest":
        if not self.connector_id and not self.project_id:
            raise ValueError("Either connectorId or projectId is required")
        return self
