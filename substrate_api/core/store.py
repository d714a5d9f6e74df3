"""
In-memory resource store.

The store is an ordinary object constructed by ``build_backend`` and passed
to the dispatcher; nothing in the package holds it as a module global. Each
entity type lives in its own ``Collection`` keyed by identity, in insertion
order.
"""

import logging
import re
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterator,
    List,
    Mapping,
    Optional,
    Type,
    TypeVar,
)

from substrate_api.shared.exceptions import (
    NotFoundError,
    RequestValidationError,
    RevisionMismatchError,
)
from substrate_api.shared.utils import utcnow

from .entities import (
    ActivityActor,
    ActivityTarget,
    Entity,
    InstalledConnector,
    Organization,
    OrganizationMember,
    Project,
    ProjectActivity,
    ProjectInvitation,
    ProjectMember,
    SyncJob,
    Team,
    TeamMember,
    User,
    WorkspaceContext,
)
from .enums import ActivityType, Severity

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


def deep_merge(base: Dict[str, Any], updates: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge ``updates`` into a copy of ``base``, recursing into nested dicts."""
    merged = dict(base)
    for key, value in updates.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _matches(entity: Entity, key: str, expected: Any) -> bool:
    if key not in type(entity).model_fields:
        # Unknown filter keys are ignored rather than rejected
        return True
    value = getattr(entity, key)
    if isinstance(value, Enum):
        return value == expected or value.value == expected
    return value == expected


class Collection(Generic[E]):
    """Identity-keyed collection of one entity type."""

    def __init__(self, model: Type[E], prefix: str) -> None:
        self.model = model
        self.prefix = prefix
        self._items: Dict[str, E] = {}
        self._counter = 0
        self._id_pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[E]:
        return iter(list(self._items.values()))

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._items

    def next_id(self) -> str:
        self._counter += 1
        return f"{self.prefix}-{self._counter}"

    def _observe_id(self, entity_id: str) -> None:
        # Keep the counter ahead of explicitly supplied identities
        match = self._id_pattern.match(entity_id)
        if match:
            self._counter = max(self._counter, int(match.group(1)))

    def get(self, entity_id: str) -> Optional[E]:
        return self._items.get(entity_id)

    def get_or_raise(self, entity_id: str, label: Optional[str] = None) -> E:
        entity = self._items.get(entity_id)
        if entity is None:
            name = label or self.model.__name__
            raise NotFoundError(f"{name} not found: {entity_id}")
        return entity

    def list(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        predicate: Optional[Callable[[E], bool]] = None,
        **criteria: Any,
    ) -> List[E]:
        """
        List entities matching all equality criteria.

        Args:
            filters: Field -> expected value map; keys that are not model
                fields are ignored and None values are skipped
            predicate: Optional extra test applied after the criteria
            **criteria: Additional field -> expected value pairs

        Returns:
            Matching entities in insertion order
        """
        wanted = {
            k: v for k, v in {**(filters or {}), **criteria}.items() if v is not None
        }
        results = []
        for entity in self._items.values():
            if not all(_matches(entity, k, v) for k, v in wanted.items()):
                continue
            if predicate is not None and not predicate(entity):
                continue
            results.append(entity)
        return results

    def find_one(self, **criteria: Any) -> Optional[E]:
        matches = self.list(**criteria)
        return matches[0] if matches else None

    def count(self, **criteria: Any) -> int:
        return len(self.list(**criteria))

    def insert(self, entity: E, stamp: bool = True) -> E:
        """
        Insert a new entity, assigning identity, timestamps and revision 1.

        Args:
            entity: Entity to store; a preset ``id`` is kept (seed data)
            stamp: Reset created/updated timestamps to now

        Returns:
            The stored entity
        """
        entity_id = entity.id or self.next_id()
        if entity_id in self._items:
            raise ValueError(f"Duplicate identity {entity_id}")
        self._observe_id(entity_id)

        update: Dict[str, Any] = {"id": entity_id, "revision": 1}
        if stamp:
            now = utcnow()
            update["created_at"] = now
            update["updated_at"] = now
        stored = entity.model_copy(update=update)
        self._items[entity_id] = stored
        return stored

    def replace(self, entity: E, expected_revision: Optional[int] = None) -> E:
        """
        Replace a stored entity, keeping its identity and parents.

        The revision and ``updated_at`` advance only when the content
        actually changes, so replaying an identical update is a no-op.

        Raises:
            NotFoundError: If the identity is not stored
            RevisionMismatchError: If ``expected_revision`` is stale
            RequestValidationError: If a parent reference would change
        """
        current = self.get_or_raise(entity.id)
        if expected_revision is not None and expected_revision != current.revision:
            raise RevisionMismatchError(entity.id, expected_revision, current.revision)

        for field in self.model.parent_fields:
            if getattr(entity, field) != getattr(current, field):
                raise RequestValidationError(
                    f"{field} cannot be changed on {self.model.__name__}"
                )

        ignored = {"revision", "updated_at", "created_at"}
        if entity.model_dump(exclude=ignored) == current.model_dump(exclude=ignored):
            return current

        stored = entity.model_copy(
            update={
                "created_at": current.created_at,
                "updated_at": utcnow(),
                "revision": current.revision + 1,
            }
        )
        self._items[entity.id] = stored
        return stored

    def merge(
        self,
        entity_id: str,
        changes: Mapping[str, Any],
        expected_revision: Optional[int] = None,
    ) -> E:
        """Apply a partial update (deep for nested models) and replace."""
        current = self.get_or_raise(entity_id)
        merged = deep_merge(current.model_dump(), changes)
        return self.replace(self.model.model_validate(merged), expected_revision)

    def reassign_parent(self, entity_id: str, field: str, new_parent_id: str) -> E:
        """The one explicit operation that moves an entity to another parent."""
        if field not in self.model.parent_fields:
            raise ValueError(f"{field} is not a parent reference of {self.model}")
        current = self.get_or_raise(entity_id)
        stored = current.model_copy(
            update={
                field: new_parent_id,
                "updated_at": utcnow(),
                "revision": current.revision + 1,
            }
        )
        self._items[entity_id] = stored
        return stored

    def remove(self, entity_id: str) -> E:
        entity = self.get_or_raise(entity_id)
        del self._items[entity_id]
        return entity


class ActivityLog(Collection[ProjectActivity]):
    """Append-only collection: entries are never replaced or removed."""

    def replace(self, entity, expected_revision=None):  # type: ignore[override]
        raise TypeError("Activity entries are immutable")

    def merge(self, entity_id, changes, expected_revision=None):  # type: ignore[override]
        raise TypeError("Activity entries are immutable")

    def remove(self, entity_id):  # type: ignore[override]
        raise TypeError("Activity entries are immutable")


class ResourceStore:
    """Authoritative in-memory collections of all tenant entities."""

    def __init__(self) -> None:
        self.users: Collection[User] = Collection(User, "user")
        self.organizations: Collection[Organization] = Collection(Organization, "org")
        self.organization_members: Collection[OrganizationMember] = Collection(
            OrganizationMember, "org-member"
        )
        self.projects: Collection[Project] = Collection(Project, "proj")
        self.project_members: Collection[ProjectMember] = Collection(
            ProjectMember, "member"
        )
        self.teams: Collection[Team] = Collection(Team, "team")
        self.team_members: Collection[TeamMember] = Collection(
            TeamMember, "team-member"
        )
        self.invitations: Collection[ProjectInvitation] = Collection(
            ProjectInvitation, "inv"
        )
        self.activity: ActivityLog = ActivityLog(ProjectActivity, "act")
        self.contexts: Collection[WorkspaceContext] = Collection(
            WorkspaceContext, "ctx"
        )
        self.connectors: Collection[InstalledConnector] = Collection(
            InstalledConnector, "conn"
        )
        self.sync_jobs: Collection[SyncJob] = Collection(SyncJob, "sync")

    def record_activity(
        self,
        project: Project,
        activity_type: ActivityType,
        actor: Optional[User] = None,
        target: Optional[ActivityTarget] = None,
        severity: Severity = Severity.info,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ProjectActivity:
        """
        Append an activity entry for a project.

        Args:
            project: Project the activity belongs to
            activity_type: Closed activity type
            actor: Acting user; None records the system as actor
            target: Optional reference to the affected resource
            severity: info, warning or critical
            metadata: Free-form details

        Returns:
            The appended entry
        """
        entry = ProjectActivity(
            project_id=project.id,
            organization_id=project.organization_id,
            type=activity_type,
            actor=(
                ActivityActor(user_id=actor.id, name=actor.name, avatar=actor.avatar)
                if actor
                else ActivityActor(user_id="system", name="System")
            ),
            target=target,
            severity=severity,
            metadata=metadata,
        )
        stored = self.activity.insert(entry)
        logger.info(
            f"Activity {stored.type.value} recorded for project {project.id}"
        )
        return stored

    def organization_stats(self, organization_id: str) -> Dict[str, int]:
        return {
            "totalProjects": self.projects.count(organization_id=organization_id),
            "totalMembers": self.organization_members.count(
                organization_id=organization_id
            ),
            "totalTeams": self.teams.count(organization_id=organization_id),
        }
