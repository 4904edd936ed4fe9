"""Access State — read-only/editable sharing state machine and its notifications.

Invariants:
    - Initial mode is EDITABLE; importing a shared snapshot enters READ_ONLY
    - READ_ONLY -> EDITABLE only via grant_edit_access on a notification bound to
      GRANT_EDIT_ACCESS; granting removes that notification
    - epoch increments on every mode change; an approval carries the epoch of the
      request it answers and is ignored once the epoch has moved on
    - At most one edit request is pending per epoch
    - Notifications live in memory only (never persisted)

Design Decisions:
    - Mutating methods on a dataclass, like SessionState: deterministic and
      testable without mocks; the shell owns the approval timer
    - The simulated approval is just approve_edit_request(epoch) called later
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from equiptrack.core.domain_types import (
    AccessMode, BoundAction, NotificationId, NotificationKind,
)
from equiptrack.core.errors import NotificationNotFoundError


@dataclass
class Notification:
    id: NotificationId
    kind: NotificationKind
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    read: bool = False
    bound_action: BoundAction | None = None


def new_notification(
    kind: NotificationKind, message: str, bound_action: BoundAction | None = None,
) -> Notification:
    return Notification(
        id=NotificationId(uuid.uuid4().hex), kind=kind,
        message=message, bound_action=bound_action,
    )


@dataclass
class AccessState:
    """Per-session sharing state — pure dataclass, no IO."""

    mode: AccessMode = AccessMode.EDITABLE
    epoch: int = 0
    pending_request_epoch: int | None = None
    notifications: list[Notification] = field(default_factory=list)

    # --- Computed properties ---------------------------------------------------

    @property
    def is_read_only(self) -> bool:
        return self.mode == AccessMode.READ_ONLY

    @property
    def request_pending(self) -> bool:
        return self.pending_request_epoch == self.epoch

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)

    # --- Transitions -----------------------------------------------------------

    def notify(
        self, kind: NotificationKind, message: str,
        bound_action: BoundAction | None = None,
    ) -> Notification:
        notification = new_notification(kind, message, bound_action)
        self.notifications.insert(0, notification)
        return notification

    def enter_read_only(self) -> None:
        self.mode = AccessMode.READ_ONLY
        self.epoch += 1
        self.pending_request_epoch = None
        self._drop_bound(BoundAction.GRANT_EDIT_ACCESS)

    def raise_edit_request(self) -> int | None:
        """Step 1: ask the owner for edit access.

        Returns the epoch the approval must carry, or None when there is
        nothing to request (already editable, or a request is pending).
        """
        if not self.is_read_only or self.request_pending:
            return None
        self.pending_request_epoch = self.epoch
        self.notify(NotificationKind.INFO, "Edit access requested from the ledger owner.")
        return self.epoch

    def approve_edit_request(self, epoch: int) -> Notification | None:
        """Step 2: the owner approved. Ignored when stale."""
        if not self.is_read_only or epoch != self.epoch or not self.request_pending:
            return None
        self.pending_request_epoch = None
        return self.notify(
            NotificationKind.REQUEST,
            "Edit access approved. Open this notification to start editing.",
            BoundAction.GRANT_EDIT_ACCESS,
        )

    def grant_edit_access(self, notification_id: str) -> None:
        """Invoke the bound action: become editable and consume the notification."""
        notification = self._find(notification_id)
        if notification is None or notification.bound_action != BoundAction.GRANT_EDIT_ACCESS:
            raise NotificationNotFoundError(notification_id)
        self.notifications.remove(notification)
        self.mode = AccessMode.EDITABLE
        self.epoch += 1
        self.pending_request_epoch = None

    def dismiss(self, notification_id: str) -> None:
        notification = self._find(notification_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        self.notifications.remove(notification)

    def mark_all_read(self) -> None:
        for notification in self.notifications:
            notification.read = True

    def _find(self, notification_id: str) -> Notification | None:
        return next((n for n in self.notifications if n.id == notification_id), None)

    def _drop_bound(self, action: BoundAction) -> None:
        self.notifications = [n for n in self.notifications if n.bound_action != action]
