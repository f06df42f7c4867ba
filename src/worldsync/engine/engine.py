"""Tick-driven coordinator.

Owns the session state, mapping table, protocol client and every world
pass, and runs them on fixed tick cadences from a single ``tick`` call.

Usage:
    engine = Engine(load_settings(), EngineSettings(), world)
    engine.start()
    while running:
        engine.tick()

    # Host hooks
    engine.begin_transition()       # level change
    engine.on_save_loaded()         # save reload, forgets local checks
    engine.report_goal("ending")
"""

from __future__ import annotations

import logging
from typing import Any

from worldsync.config import EngineSettings, SessionSettings
from worldsync.mapping import ItemMappingTable, LocationId
from worldsync.notify import ColorCategory, NotificationFeed
from worldsync.session import RetryPolicy, SessionClient, SessionState, Transport, WebSocketTransport
from worldsync.world import (
    InMemoryWorld,
    InventoryReconciler,
    SideEffectQueue,
    VisibilityEnforcer,
    WorldQuery,
)

logger = logging.getLogger(__name__)


def default_transport(settings: SessionSettings) -> Transport:
    """Websocket transport with the configured open-retry policy."""
    policy = RetryPolicy(
        max_attempts=settings.connect_attempts,
        backoff="exponential" if settings.connect_attempts > 1 else "none",
        base_delay=settings.connect_backoff,
    )
    return WebSocketTransport(policy)


class Engine:
    """Reconciles one host world against one session.

    In offline mode no protocol client is created and the session is
    treated as synced immediately, so local play works without a server.

    Args:
        session_settings: Connection settings. Defaults from environment.
        engine_settings: Cadences and tuning. Defaults from environment.
        world: Host world collaborator. An empty in-memory world if omitted.
        transport: Message channel. Built from ``session_settings`` if omitted.
        table: Item mapping table. The built-in tables if omitted.
        client_uuid: Explicit client UUID, bypassing the UUID file.
    """

    def __init__(
        self,
        session_settings: SessionSettings | None = None,
        engine_settings: EngineSettings | None = None,
        world: WorldQuery | None = None,
        transport: Transport | None = None,
        table: ItemMappingTable | None = None,
        client_uuid: str | None = None,
    ) -> None:
        self.session_settings = session_settings or SessionSettings()
        self.settings = engine_settings or EngineSettings()
        self.world: WorldQuery = world if world is not None else InMemoryWorld()
        self.state = SessionState()
        self.table = table or ItemMappingTable()
        self.feed = NotificationFeed(
            max_visible=self.settings.notification_max_visible,
            default_duration=self.settings.notification_duration,
        )

        self.client: SessionClient | None = None
        if not self.session_settings.offline_mode:
            self.client = SessionClient(
                self.session_settings,
                self.state,
                self.table,
                transport or default_transport(self.session_settings),
                self.feed,
                client_uuid,
            )

        self.side_effects = SideEffectQueue(self.world, self.settings.side_effect_attempts)
        self.enforcer = VisibilityEnforcer(
            self.world,
            self.state,
            self.table,
            self.side_effects,
            report=self._report_location,
            pickup_radius_sq=self.settings.pickup_radius_sq,
            visibility_retries=self.settings.visibility_retries,
        )
        self.inventory = InventoryReconciler(self.world, self.state)

        self._tick_count = 0
        self._cooldown = 0
        self._scan_pending = True
        self._synced_epoch: int | None = None
        self._shutting_down = False

        if self.client is None:
            self.state.mark_synced()

    @property
    def offline(self) -> bool:
        return self.client is None

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def cooldown_active(self) -> bool:
        return self._cooldown > 0

    @property
    def scan_pending(self) -> bool:
        return self._scan_pending

    def start(self) -> None:
        """Connect to the session server, or announce offline play."""
        if self.client is None:
            logger.info("Offline mode, session server disabled")
            self.feed.notify_simple("Offline mode", ColorCategory.SERVER)
            return
        logger.info("Session settings: %s", self.session_settings.describe())
        self.client.connect()

    def shutdown(self) -> None:
        """Stop all world work and close the connection."""
        self._shutting_down = True
        if self.client is not None:
            self.client.disconnect()

    def tick(self) -> None:
        """Advance one tick. Never raises."""
        if self._shutting_down:
            return
        self._tick_count += 1
        try:
            self._tick()
        except Exception:
            logger.exception("Tick %d failed", self._tick_count)

    def _due(self, every: int) -> bool:
        return every > 0 and self._tick_count % every == 0

    def _tick(self) -> None:
        s = self.settings
        if self.client is not None:
            self.client.poll()

        if self._due(s.notifications_every):
            self.feed.tick(s.notifications_every, s.ticks_per_second)

        if self._cooldown > 0:
            self._cooldown -= 1
            if self._cooldown == 0:
                logger.info("Transition cooldown expired, resuming")
            return

        # Every (re)sync starts a new epoch: drop tracking from the previous one
        if self.state.sync_ready and self.state.epoch != self._synced_epoch:
            self._synced_epoch = self.state.epoch
            self._scan_pending = True

        if self._scan_pending:
            self._scan_pending = False
            self.enforcer.reset_cache()
            self.enforcer.scan()

        if self._due(s.enforce_every):
            self.enforcer.enforce()
        if self._due(s.refresh_every):
            self.enforcer.refresh()
        if self._due(s.side_effects_every):
            self.side_effects.process_once()
        if self._due(s.inventory_every):
            self.inventory.reconcile()

    def begin_transition(self, cooldown_ticks: int | None = None) -> None:
        """Drop every cached world reference and pause world work.

        Call when the host starts tearing down the current level. A full
        scan runs on the first tick after the cooldown.
        """
        ticks = self.settings.transition_cooldown if cooldown_ticks is None else cooldown_ticks
        self.enforcer.reset_cache()
        self._scan_pending = True
        self._cooldown = max(0, ticks)
        logger.info("Level transition, cooldown %d ticks", self._cooldown)

    def on_save_loaded(self, cooldown_ticks: int | None = None) -> None:
        """Save reload: transition plus forgetting local checks.

        Server-confirmed checks come back on the next handshake or room update.
        """
        self.begin_transition(cooldown_ticks)
        self.state.reset_checked()

    def report_goal(self, name: str = "") -> bool:
        """Forward goal completion once. Returns True if sent now."""
        logger.info("Goal reached%s", f": {name}" if name else "")
        if self.client is None:
            logger.info("Offline mode, goal not reported")
            return False
        sent = self.client.report_goal_complete()
        if sent:
            self.feed.notify_simple("Goal complete!", ColorCategory.PROGRESSION)
        return sent

    def _report_location(self, location: LocationId) -> None:
        if self.client is None:
            logger.debug("Offline, location %d kept locally", location)
            return
        self.client.report_location_checked(location)

    def snapshot(self) -> dict[str, Any]:
        with self.state.lock:
            return {
                "tick": self._tick_count,
                "cooldown": self._cooldown,
                "sync_ready": self.state.sync_ready,
                "epoch": self.state.epoch,
                "granted": sorted(self.state.granted),
                "checked": sorted(self.state.checked),
                "reusable": self.state.reusable,
                "pending_side_effects": len(self.side_effects),
                "client": self.client.snapshot() if self.client is not None else None,
            }

    def dump(self) -> None:
        """Log full engine state."""
        for key, value in self.snapshot().items():
            logger.info("%s: %s", key, value)
        self.enforcer.dump()
