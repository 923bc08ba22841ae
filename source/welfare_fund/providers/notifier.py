"""This module provides the delivery side of transition events.

The review core emits one `TransitionEvent` per accepted transition, after the
transition committed. How an event becomes a user-visible message, and what
happens to that message once it is read, is entirely up to the notifier.
"""

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from welfare_fund.models.events import TransitionEvent
from welfare_fund.providers.logging import Logger, LoggingProvider


@runtime_checkable
class Notifier(Protocol):
    """Receives transition events."""

    def publish(self, event: TransitionEvent) -> None:
        """Delivers a single event.

        Args:
            event: The transition that was accepted.
        """
        ...


class LoggingNotifier:
    """A notifier that writes every event to the application log."""

    logger: Logger

    def __init__(self) -> None:
        """Initializes the notifier with the application logger."""
        self.logger = LoggingProvider().get_logger()

    def publish(self, event: TransitionEvent) -> None:
        """Logs the event.

        Args:
            event: The transition that was accepted.
        """
        self.logger.info(
            f"Application {event.application_id} moved from {event.from_status or '-'} "
            f"to {event.to_status} by {event.actor_role}."
        )


class CompositeNotifier:
    """Fans events out to several notifiers.

    A notifier that fails is logged and skipped; the remaining notifiers still
    receive the event, and the transition that produced it stays committed.

    Args:
        notifiers: The notifiers to deliver to, in order.
    """

    logger: Logger

    def __init__(self, notifiers: Iterable[Notifier]) -> None:
        """Initializes the composite.

        Args:
            notifiers: The notifiers to deliver to, in order.
        """
        self.notifiers = list(notifiers)
        self.logger = LoggingProvider().get_logger()

    def publish(self, event: TransitionEvent) -> None:
        """Delivers the event to every notifier.

        Args:
            event: The transition that was accepted.
        """
        for notifier in self.notifiers:
            try:
                notifier.publish(event)
            except Exception as e:
                self.logger.error(
                    f"Notifier {type(notifier).__name__} failed for application {event.application_id}: {e}",
                    exc_info=True,
                )
