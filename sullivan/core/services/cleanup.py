"""
Cleanup engine — best-effort reclamation of engine resources.

Four phases, each independently callable and none ever fatal:

    orphans  → stale containers of this stack
    networks → declared networks nobody is attached to
    volumes  → cache volumes and dangling anonymous volumes
    images   → images no container references

``full_cleanup`` runs them in that order, because removing an orphan
can free a network and removing containers can free volumes and images.
Protected (database) volumes are never handed to any removal call.
"""

from __future__ import annotations

import logging

from sullivan.adapters.base import RuntimeAdapter, RuntimeAdapterError
from sullivan.core.models.result import CleanupResult, PhaseResult
from sullivan.core.models.service import ServiceRegistry

logger = logging.getLogger(__name__)

_ORPHAN_STATES = ("exited", "dead")


class CleanupEngine:
    """Reclaims orphans, networks, volumes and images of one stack."""

    def __init__(self, runtime: RuntimeAdapter, registry: ServiceRegistry):
        self._runtime = runtime
        self._registry = registry

    # ── Phases ──────────────────────────────────────────────────

    def reclaim_orphans(self) -> PhaseResult:
        """Tear down compose orphans, then stale containers named like ours."""
        logger.info("Cleaning up orphan containers...")
        errors: list[str] = []
        removed: list[str] = []

        try:
            self._runtime.compose_down(remove_orphans=True)
        except RuntimeAdapterError as e:
            logger.debug("compose down --remove-orphans failed: %s", e)
            errors.append(str(e))

        try:
            stale = self._runtime.list_containers(statuses=_ORPHAN_STATES)
        except RuntimeAdapterError as e:
            logger.warning("Cannot list stopped containers: %s", e)
            errors.append(str(e))
            stale = []

        for container in stale:
            if not self._registry.matches_orphan(container.name):
                continue
            logger.info("  - %s", container.name)
            try:
                self._runtime.remove_container(container.name)
            except RuntimeAdapterError as e:
                logger.debug("Could not remove %s: %s", container.name, e)
                errors.append(str(e))
                continue
            removed.append(container.name)

        logger.info("Orphan cleanup complete")
        return PhaseResult.from_errors("orphans", errors, removed=removed)

    def reclaim_networks(self) -> PhaseResult:
        """Remove declared networks with no attached container, then prune."""
        logger.info("Cleaning up unused Docker networks...")
        errors: list[str] = []
        removed: list[str] = []
        kept: list[str] = []

        for network in self._registry.networks:
            try:
                if not self._runtime.network_exists(network.name):
                    continue
                attached = self._runtime.network_containers(network.name)
            except RuntimeAdapterError as e:
                errors.append(str(e))
                continue

            if attached:
                logger.debug("Network %s still in use by: %s", network.name, " ".join(attached))
                kept.append(network.name)
                continue

            logger.info("Removing unused network: %s", network.name)
            try:
                self._runtime.remove_network(network.name)
            except RuntimeAdapterError as e:
                logger.debug("Could not remove network %s: %s", network.name, e)
                errors.append(str(e))
                continue
            removed.append(network.name)

        try:
            self._runtime.prune_networks()
        except RuntimeAdapterError as e:
            errors.append(str(e))

        logger.info("Network cleanup complete")
        return PhaseResult.from_errors("networks", errors, removed=removed, kept=kept)

    def reclaim_volumes(self) -> PhaseResult:
        """Remove idle cache volumes, then prune dangling anonymous volumes."""
        logger.info("Cleaning up dangling volumes...")
        errors: list[str] = []
        removed: list[str] = []
        kept: list[str] = []

        try:
            existing = set(self._runtime.list_volumes())
        except RuntimeAdapterError as e:
            errors.append(str(e))
            existing = set()

        for name in self._registry.volumes.cache:
            if name not in existing or self._registry.is_protected_volume(name):
                continue
            try:
                self._runtime.remove_volume(name)
            except RuntimeAdapterError:
                # Still mounted by a container; regenerated data, left for later.
                logger.info("%s in use, skipping", name)
                kept.append(name)
                continue
            logger.info("Removed cache volume %s", name)
            removed.append(name)

        kept.extend(v for v in self._registry.volumes.protected if v in existing)

        try:
            self._runtime.prune_volumes()
        except RuntimeAdapterError as e:
            errors.append(str(e))

        logger.info("Volume cleanup complete")
        return PhaseResult.from_errors("volumes", errors, removed=removed, kept=kept)

    def reclaim_images(self) -> PhaseResult:
        """Prune images no container references."""
        logger.info("Cleaning up unused images...")
        try:
            output = self._runtime.prune_images()
        except RuntimeAdapterError as e:
            logger.warning("Image prune failed: %s", e)
            return PhaseResult.soft_failure("images", str(e), errors=[str(e)])
        logger.info("Image cleanup complete")
        return PhaseResult.success("images", reason=_last_line(output))

    # ── Composition ─────────────────────────────────────────────

    def full_cleanup(self) -> CleanupResult:
        """All four phases, an engine-wide prune, then a disk usage report."""
        result = CleanupResult()
        result.phases.append(self.reclaim_orphans())
        result.phases.append(self.reclaim_networks())
        result.phases.append(self.reclaim_volumes())
        result.phases.append(self.reclaim_images())

        logger.info("Running Docker system prune...")
        try:
            output = self._runtime.prune_system()
            result.phases.append(PhaseResult.success("system", reason=_last_line(output)))
        except RuntimeAdapterError as e:
            result.phases.append(PhaseResult.soft_failure("system", str(e), errors=[str(e)]))

        try:
            result.disk_usage = self._runtime.disk_usage()
        except RuntimeAdapterError as e:
            logger.debug("disk usage unavailable: %s", e)

        for phase in result.phases:
            if phase.soft_failed:
                logger.warning("Cleanup phase '%s' incomplete: %s", phase.phase, phase.reason)

        logger.info("Full cleanup complete")
        return result


def _last_line(output: str) -> str:
    lines = [line for line in output.strip().splitlines() if line.strip()]
    return lines[-1] if lines else ""
