"""
Service registry models — services, networks, volumes, endpoints.

The registry is the canonical truth about what the stack contains and
in which order it comes up. Ordering is an explicit ``tier`` on every
service rather than a position in a list: lower tiers must be running
before higher tiers are started when the whole stack is requested.
"""

from __future__ import annotations

import fnmatch
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Tier(IntEnum):
    """Dependency rank of a service. Lower comes up first."""

    DATABASE = 0
    DOWNLOAD = 1
    MANAGEMENT = 2
    POST_PROCESSING = 3
    MEDIA_SERVER = 4
    BOOKS = 5
    UTILITY = 6
    MONITORING = 7


class ServiceDescriptor(BaseModel):
    """One managed container workload."""

    model_config = ConfigDict(frozen=True)

    name: str
    tier: Tier
    health_check: bool = True
    networks: tuple[str, ...] = ()
    description: str = ""

    @field_validator("tier", mode="before")
    @classmethod
    def _tier_by_name(cls, value: object) -> object:
        # Catalog files may spell tiers as names ("database") or ranks (0).
        if isinstance(value, str) and not value.isdigit():
            try:
                return Tier[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown tier '{value}'") from None
        return value


class NetworkDescriptor(BaseModel):
    """A shared network, created idempotently before bring-up."""

    model_config = ConfigDict(frozen=True)

    name: str
    driver: str = "bridge"


class VolumePolicy(BaseModel):
    """Which named volumes may be reclaimed and which never may."""

    model_config = ConfigDict(frozen=True)

    protected: tuple[str, ...] = ()
    cache: tuple[str, ...] = ()


class Endpoint(BaseModel):
    """Expected local URL of a service (informational, never probed)."""

    model_config = ConfigDict(frozen=True)

    service: str
    label: str
    url: str
    group: str = "Services"


class ServiceRegistry(BaseModel):
    """Static, ordered table of everything the stack is made of.

    There is no mutation API. Adding a service means adding it to the
    catalog with the right tier; dependencies are never inferred.
    """

    model_config = ConfigDict(frozen=True)

    project_name: str = "sullivan"
    services: tuple[ServiceDescriptor, ...] = ()
    networks: tuple[NetworkDescriptor, ...] = ()
    volumes: VolumePolicy = Field(default_factory=VolumePolicy)
    endpoints: tuple[Endpoint, ...] = ()
    orphan_patterns: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_consistency(self) -> ServiceRegistry:
        names = [s.name for s in self.services]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"Duplicate service names: {', '.join(dupes)}")

        nets = [n.name for n in self.networks]
        dupes = sorted({n for n in nets if nets.count(n) > 1})
        if dupes:
            raise ValueError(f"Duplicate network names: {', '.join(dupes)}")

        both = sorted(set(self.volumes.protected) & set(self.volumes.cache))
        if both:
            raise ValueError(
                f"Volumes cannot be both protected and cache: {', '.join(both)}"
            )

        known = set(names)
        for ep in self.endpoints:
            if ep.service not in known:
                raise ValueError(f"Endpoint '{ep.label}' refers to unknown service '{ep.service}'")

        declared = set(nets)
        for svc in self.services:
            for net in svc.networks:
                if net not in declared:
                    raise ValueError(
                        f"Service '{svc.name}' joins undeclared network '{net}'"
                    )
        return self

    # ── Lookups ─────────────────────────────────────────────────

    def all_services(self) -> list[ServiceDescriptor]:
        """All services in dependency order.

        Sorted by tier; declaration order breaks ties (the sort is stable).
        """
        return sorted(self.services, key=lambda s: s.tier)

    def names(self) -> list[str]:
        return [s.name for s in self.all_services()]

    def get(self, name: str) -> ServiceDescriptor | None:
        for svc in self.services:
            if svc.name == name:
                return svc
        return None

    def is_known(self, name: str) -> bool:
        return self.get(name) is not None

    def is_protected_volume(self, name: str) -> bool:
        return name in self.volumes.protected

    def matches_orphan(self, container_name: str) -> bool:
        """Whether a container name belongs to this stack's naming convention."""
        name = container_name.lstrip("/")
        for pattern in self.orphan_patterns:
            if any(ch in pattern for ch in "*?["):
                if fnmatch.fnmatch(name, pattern):
                    return True
            elif pattern in name:
                return True
        return False

    def endpoint_groups(self) -> dict[str, list[Endpoint]]:
        """Endpoints grouped by heading, in declaration order."""
        groups: dict[str, list[Endpoint]] = {}
        for ep in self.endpoints:
            groups.setdefault(ep.group, []).append(ep)
        return groups
