"""
Request dispatcher: the single entry point of the backend.

``Dispatcher.dispatch`` takes an abstract request (method, path, body,
params), resolves it through the route trie, runs the handler and returns
either an ``ApiResponse`` or an ``ApiFailure``. It never raises.

Mutating requests are serialized per tenant scope (one lock per
organization, plus a global lock for auth, users and organization creation)
so two requests touching the same organization cannot interleave.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import parse_qsl, urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from substrate_api.domains.auth.sessions import SessionRegistry
from substrate_api.shared.exceptions import ApiException, InternalError
from substrate_api.shared.pagination import Page

from .context import RequestContext, validation_details
from .routing import RouteTrie, Router
from .settings import Settings
from .store import ResourceStore

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = "global"


class ApiRequest(BaseModel):
    method: str
    path: str
    body: Any = None
    params: Dict[str, Any] = Field(default_factory=dict)


class ApiResponse(BaseModel):
    status_code: int = 200
    data: Any = None
    meta: Optional[Dict[str, Any]] = None

    ok: bool = True

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"data": self.data}
        if self.meta is not None:
            payload["meta"] = self.meta
        return payload


class ApiFailure(BaseModel):
    status_code: int
    code: str
    message: str
    details: Optional[Any] = None

    ok: bool = False

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload

    @classmethod
    def from_exception(cls, exc: ApiException) -> "ApiFailure":
        return cls(
            status_code=exc.status_code,
            code=exc.code,
            message=exc.message,
            details=exc.details,
        )


ApiResult = Union[ApiResponse, ApiFailure]


def to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class Dispatcher:
    def __init__(
        self, store: ResourceStore, sessions: SessionRegistry, settings: Settings
    ) -> None:
        self.store = store
        self.sessions = sessions
        self.settings = settings
        self.routes = RouteTrie()
        self._locks: Dict[str, asyncio.Lock] = {}

    def include_router(self, router: Router) -> None:
        self.routes.include(router)

    def _lock_for(self, scope: str) -> asyncio.Lock:
        lock = self._locks.get(scope)
        if lock is None:
            lock = self._locks[scope] = asyncio.Lock()
        return lock

    def _organization_of_project(self, project_id: Optional[str]) -> Optional[str]:
        project = self.store.projects.get(project_id) if project_id else None
        return project.organization_id if project else None

    def _scope_of(self, params: Mapping[str, str], body: Any) -> str:
        """Resolve the tenant scope whose lock serializes a mutation."""
        org_id: Optional[str] = params.get("org_id")
        if org_id is None:
            org_id = self._organization_of_project(params.get("project_id"))
        if org_id is None and "connector_id" in params:
            connector = self.store.connectors.get(params["connector_id"])
            org_id = self._organization_of_project(
                connector.project_id if connector else None
            )
        if org_id is None and "invitation_id" in params:
            invitation = self.store.invitations.get(params["invitation_id"])
            org_id = invitation.organization_id if invitation else None
        if org_id is None and isinstance(body, Mapping):
            # Body values are unvalidated here; malformed ones are left to
            # the handler's parse_body
            body_org_id = body.get("organizationId")
            body_project_id = body.get("projectId")
            if isinstance(body_org_id, str):
                org_id = body_org_id
            elif isinstance(body_project_id, str):
                org_id = self._organization_of_project(body_project_id)
        return f"org:{org_id}" if org_id else GLOBAL_SCOPE

    def _to_response(self, result: Any, status_code: int) -> ApiResponse:
        if isinstance(result, ApiResponse):
            return result
        if isinstance(result, Page):
            return ApiResponse(
                status_code=status_code,
                data=to_jsonable(result.data),
                meta=result.meta.model_dump(by_alias=True),
            )
        return ApiResponse(status_code=status_code, data=to_jsonable(result))

    async def dispatch(self, request: Union[ApiRequest, Mapping[str, Any]]) -> ApiResult:
        """
        Serve one request and return its result as data.

        Args:
            request: ApiRequest or a mapping with method, path, body, params

        Returns:
            ApiResponse on success, ApiFailure for every failure
        """
        try:
            if not isinstance(request, ApiRequest):
                request = ApiRequest.model_validate(request)

            method = request.method.upper()
            url = urlsplit(request.path)
            params: Dict[str, Any] = {
                **dict(parse_qsl(url.query)),
                **request.params,
            }

            match = self.routes.resolve(method, url.path)
            ctx = RequestContext(
                store=self.store,
                sessions=self.sessions,
                settings=self.settings,
                method=method,
                path=url.path,
                body=request.body,
                params=params,
            )

            if match.route.mutates:
                scope = self._scope_of(match.params, request.body)
                async with self._lock_for(scope):
                    result = await match.route.handler(ctx, **match.params)
            else:
                result = await match.route.handler(ctx, **match.params)

            return self._to_response(result, match.route.status_code)

        except ApiException as e:
            logger.warning(
                f"{getattr(request, 'method', '?')} {getattr(request, 'path', '?')} "
                f"failed: {e.code} {e.message}"
            )
            return ApiFailure.from_exception(e)
        except ValidationError as e:
            logger.warning(f"Validation failed: {e.error_count()} error(s)")
            return ApiFailure(
                status_code=422,
                code="VALIDATION_ERROR",
                message="Invalid request data",
                details=validation_details(e),
            )
        except Exception as e:
            logger.error(f"Unhandled error while dispatching: {e}", exc_info=True)
            return ApiFailure.from_exception(InternalError(str(e)))

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> ApiResult:
        return await self.dispatch(
            ApiRequest(method=method, path=path, body=body, params=params or {})
        )
