"""Fire-and-forget email and SMS delivery of alert notifications."""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

from app.domain.entities import Notification, RecipientView
from app.infrastructure.email import send_alert_email
from app.infrastructure.sms import send_alert_sms

logger = logging.getLogger(__name__)

Sender = Callable[[str, Notification], bool]


class OutOfBandDispatcher:
    """Schedule email and SMS delivery without blocking the caller.

    Failures are logged and never reach the pipeline.
    """

    def __init__(
        self,
        *,
        max_workers: int = 4,
        email_sender: Sender = send_alert_email,
        sms_sender: Sender = send_alert_sms,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="alert-out-of-band"
        )
        self._email_sender = email_sender
        self._sms_sender = sms_sender

    def dispatch(self, recipient: RecipientView, notification: Notification) -> list[Future]:
        """Queue email and SMS for every contact ``recipient`` has."""

        futures: list[Future] = []
        if recipient.email:
            futures.append(
                self._submit("email", self._email_sender, recipient, recipient.email, notification)
            )
        if recipient.phone:
            futures.append(
                self._submit("sms", self._sms_sender, recipient, recipient.phone, notification)
            )
        return futures

    def shutdown(self, *, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=not wait)

    def _submit(
        self,
        channel: str,
        sender: Sender,
        recipient: RecipientView,
        address: str,
        notification: Notification,
    ) -> Future:
        try:
            future = self._executor.submit(sender, address, notification)
        except RuntimeError:
            logger.warning(
                "Out-of-band dispatcher stopped; %s for user %s not sent",
                channel,
                recipient.user_id,
            )
            future = Future()
            future.set_result(False)
            return future

        def _report(done: Future) -> None:
            if done.cancelled():
                return
            exc = done.exception()
            if exc is not None:
                logger.error(
                    "Alert %s %s to user %s failed: %s",
                    notification.alert_id,
                    channel,
                    recipient.user_id,
                    exc,
                )
            elif done.result() is False:
                logger.warning(
                    "Alert %s %s to user %s was not delivered",
                    notification.alert_id,
                    channel,
                    recipient.user_id,
                )

        future.add_done_callback(_report)
        return future


__all__ = ["OutOfBandDispatcher"]
