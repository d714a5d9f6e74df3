"""
Static connector marketplace.

Definitions are configuration, not code: installing a connector only
records which definition it uses and the configuration it was given.
"""

from typing import Dict, List, Optional

from substrate_api.domains.connectors.models import (
    AuthRequirement,
    ConnectorCapability,
    ConnectorCategory,
    ConnectorDefinition,
    Publisher,
    SyncCapabilities,
)

SUBSTRATE = Publisher(name="Substrate", verified=True)

CATEGORIES: List[ConnectorCategory] = [
    ConnectorCategory(
        id="vcs",
        name="Version Control",
        description="Git repositories, pull requests, commits",
        icon="GitBranch",
    ),
    ConnectorCategory(
        id="its",
        name="Issue Tracking",
        description="Tickets, epics, sprints",
        icon="Ticket",
    ),
    ConnectorCategory(
        id="docs",
        name="Documentation",
        description="Wikis, docs, knowledge base",
        icon="FileText",
    ),
    ConnectorCategory(
        id="comm",
        name="Communication",
        description="Slack, teams, discussions",
        icon="MessageSquare",
    ),
    ConnectorCategory(
        id="security",
        name="Security",
        description="Vulnerability scanning, compliance",
        icon="Shield",
    ),
]

DEFINITIONS: List[ConnectorDefinition] = [
    ConnectorDefinition(
        id="github",
        name="GitHub",
        description="Sync repositories, pull requests, issues, and code metadata from GitHub",
        category="vcs",
        version="2.1.0",
        icon="GitBranch",
        publisher=SUBSTRATE,
        capabilities=[
            ConnectorCapability(
                type="entities",
                entity_types=["Repository", "PullRequest", "Issue", "Commit", "Branch"],
                description="Sync GitHub repositories and code metadata",
            ),
            ConnectorCapability(
                type="relationships",
                entity_types=["depends_on", "references", "merged_from"],
                description="Map code dependencies and relationships",
            ),
        ],
        auth=AuthRequirement(
            type="token", scopes=["repo", "read:org"], required_fields=["token"]
        ),
        sync=SyncCapabilities(
            supports_realtime=True,
            supports_webhook=True,
            default_interval_minutes=15,
            min_interval_minutes=5,
            max_interval_minutes=1440,
        ),
        tags=["vcs", "git", "source-control", "popular"],
        documentation_url="https://docs.substrate.io/connectors/github",
        install_count=1250,
        rating=4.8,
        review_count=142,
    ),
    ConnectorDefinition(
        id="jira",
        name="Jira",
        description="Sync tickets, epics, sprints, and project metadata from Jira",
        category="its",
        version="1.5.2",
        icon="Ticket",
        publisher=SUBSTRATE,
        capabilities=[
            ConnectorCapability(
                type="entities",
                entity_types=["Ticket", "Epic", "Sprint", "Project"],
                description="Sync Jira issues and project structure",
            ),
            ConnectorCapability(
                type="relationships",
                entity_types=["blocks", "is_blocked_by", "relates_to"],
                description="Map issue dependencies and relationships",
            ),
        ],
        auth=AuthRequirement(
            type="basic", required_fields=["baseUrl", "email", "apiToken"]
        ),
        sync=SyncCapabilities(
            supports_realtime=False,
            supports_webhook=True,
            default_interval_minutes=30,
            min_interval_minutes=15,
            max_interval_minutes=1440,
        ),
        tags=["its", "project-management", "agile", "popular"],
        documentation_url="https://docs.substrate.io/connectors/jira",
        install_count=890,
        rating=4.5,
        review_count=78,
    ),
    ConnectorDefinition(
        id="confluence",
        name="Confluence",
        description="Sync pages and spaces, including architecture decision records",
        category="docs",
        version="1.2.0",
        icon="FileText",
        publisher=SUBSTRATE,
        capabilities=[
            ConnectorCapability(
                type="entities",
                entity_types=["Page", "Space", "Attachment"],
                description="Sync Confluence documentation",
            ),
        ],
        auth=AuthRequirement(
            type="basic", required_fields=["baseUrl", "email", "apiToken"]
        ),
        sync=SyncCapabilities(
            supports_realtime=False,
            supports_webhook=False,
            default_interval_minutes=60,
            min_interval_minutes=30,
            max_interval_minutes=1440,
        ),
        tags=["docs", "documentation", "adr", "wiki"],
        install_count=456,
        rating=4.3,
        review_count=34,
    ),
    ConnectorDefinition(
        id="slack",
        name="Slack",
        description="Capture architecture decisions and discussions from Slack",
        category="comm",
        version="1.0.0",
        icon="MessageSquare",
        publisher=SUBSTRATE,
        capabilities=[
            ConnectorCapability(
                type="events",
                entity_types=["Decision", "Discussion"],
                description="Capture decisions from channel discussions",
            ),
        ],
        auth=AuthRequirement(
            type="oauth2",
            scopes=["channels:read", "groups:read"],
            required_fields=["workspace"],
        ),
        sync=SyncCapabilities(
            supports_realtime=True,
            supports_webhook=True,
            default_interval_minutes=5,
            min_interval_minutes=1,
            max_interval_minutes=60,
        ),
        tags=["comm", "messaging", "decisions", "realtime"],
        install_count=234,
        rating=4.0,
        review_count=18,
    ),
    ConnectorDefinition(
        id="sonarqube",
        name="SonarQube",
        description="Import code quality, vulnerability and technical debt metrics",
        category="security",
        version="1.3.0",
        icon="Shield",
        publisher=SUBSTRATE,
        capabilities=[
            ConnectorCapability(
                type="metrics",
                entity_types=["CodeQuality", "Vulnerability", "TechnicalDebt"],
                description="Import SonarQube analysis results",
            ),
        ],
        auth=AuthRequirement(type="token", required_fields=["baseUrl", "token"]),
        sync=SyncCapabilities(
            supports_realtime=False,
            supports_webhook=True,
            default_interval_minutes=60,
            min_interval_minutes=30,
            max_interval_minutes=1440,
        ),
        tags=["security", "code-quality", "sast", "compliance"],
        install_count=567,
        rating=4.6,
        review_count=45,
    ),
]

_BY_ID: Dict[str, ConnectorDefinition] = {d.id: d for d in DEFINITIONS}


def get_definition(definition_id: str) -> Optional[ConnectorDefinition]:
    return _BY_ID.get(definition_id)


def search_definitions(
    category: Optional[str] = None, search: Optional[str] = None
) -> List[ConnectorDefinition]:
    """Filter the catalog by category and a case-insensitive text match."""
    results = DEFINITIONS
    if category:
        results = [d for d in results if d.category == category]
    if search:
        needle = search.lower()
        results = [
            d
            for d in results
            if needle in d.name.lower()
            or needle in d.description.lower()
            or any(needle in tag for tag in d.tags)
        ]
    return list(results)
