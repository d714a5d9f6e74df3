from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from substrate_api.domains.auth.sessions import SessionRegistry
from substrate_api.shared.exceptions import RequestValidationError

from .entities import User
from .settings import Settings
from .store import ResourceStore

M = TypeVar("M", bound=BaseModel)


def validation_details(error: ValidationError) -> list:
    return error.errors(include_url=False, include_context=False, include_input=False)


@dataclass
class RequestContext:
    """Everything a handler may use while serving one request."""

    store: ResourceStore
    sessions: SessionRegistry
    settings: Settings
    method: str
    path: str
    body: Any = None
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def principal(self) -> Optional[User]:
        user_id = self.sessions.current_user_id
        if user_id is None:
            return None
        return self.store.users.get(user_id)

    def parse_body(self, model: Type[M]) -> M:
        """
        Validate the request body against a request model.

        Raises:
            RequestValidationError: If required fields are missing or malformed
        """
        body = self.body if self.body is not None else {}
        try:
            return model.model_validate(body)
        except ValidationError as e:
            raise RequestValidationError(
                "Invalid request body", details=validation_details(e)
            )
