"""
NotificationEngine - derives alerts from planner state.

One entry point: sync(). Each run:
    1. Snapshots live tasks, live events, settings and the notification log
    2. Builds the de-duplication index (type:message) over the whole log,
       read notifications included
    3. Evaluates every rule in order, each isolated from the others' failures
    4. Appends candidates whose key is not yet in the index

Safe to call repeatedly: unchanged state emits nothing new. The whole run
holds ctx.sync_lock so concurrent callers cannot interleave and duplicate.
"""

import logging
from collections.abc import Sequence
from datetime import datetime

from krocs.context import AppContext
from krocs.helpers import to_local
from krocs.models import Notification, NotificationType, Settings, dedup_key
from krocs.notifier.rules import DEFAULT_RULES, Rule, Snapshot
from krocs.observability import RunContext

logger = logging.getLogger(__name__)


class NotificationEngine:
    """
    Stateless between runs: every run reads the stores fresh and
    remembers nothing afterwards.
    """

    def __init__(self, ctx: AppContext, rules: Sequence[Rule] = DEFAULT_RULES):
        self.ctx = ctx
        self.rules = tuple(rules)

    def sync(self, now: datetime | None = None) -> list[Notification]:
        """
        Evaluate all rules and append new notifications.

        Args:
            now: Evaluation time (defaults to the current local time).

        Returns:
            The notifications emitted by this run, in emission order.
        """
        with RunContext(prefix="sync"), self.ctx.sync_lock:
            snapshot = self._snapshot(now)
            existing_keys = {n.dedup_key for n in self.ctx.notifications.all()}
            emitted: list[Notification] = []

            def add_if_new(type: NotificationType, message: str) -> None:
                key = dedup_key(type, message)
                if key in existing_keys:
                    return
                emitted.append(self.ctx.notifications.add(type, message))
                existing_keys.add(key)

            failed = []
            for rule in self.rules:
                try:
                    candidates = rule.evaluate(snapshot)
                except Exception:
                    # One broken rule must not silence the others.
                    logger.exception("Notification rule %s failed", rule.name)
                    failed.append(rule.name)
                    continue
                for type, message in candidates:
                    add_if_new(type, message)

            logger.info(
                "Notification sync complete: %d emitted",
                len(emitted),
                extra={"emitted": len(emitted), "failed_rules": failed},
            )
            return emitted

    def _snapshot(self, now: datetime | None) -> Snapshot:
        # Unreadable task and event records are already skipped by the stores.
        try:
            settings = self.ctx.settings.get()
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Stored settings are unreadable, evaluating with defaults: %s", e)
            settings = Settings()
        return Snapshot(
            tasks=self.ctx.tasks.live(),
            events=self.ctx.events.live(),
            settings=settings,
            now=to_local(now or datetime.now()),
        )


def sync_notifications(ctx: AppContext, now: datetime | None = None) -> list[Notification]:
    """Run every default rule once against *ctx*. See NotificationEngine.sync()."""
    return NotificationEngine(ctx).sync(now)
