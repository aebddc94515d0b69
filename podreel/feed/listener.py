"""
Completion feed listener.

Subscribes once to the completion topic and forwards every "completed" event
to a CorrelationTracker. Events are handled strictly in arrival order by a
single consuming task.

Malformed events, events with another status, duplicates and events for ids
nobody waits on never stop the subscription:
- malformed: logged and dropped
- other status: ignored
- duplicate: the tracker treats it as a no-op
- unknown id: recorded by the tracker for future waiters
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from aiokafka import AIOKafkaConsumer
from aiokafka.admin import AIOKafkaAdminClient, NewTopic

from podreel.errors import MalformedEventError
from podreel.tracking import CorrelationTracker
from .config import FeedConfig


@dataclass(frozen=True)
class CompletionEvent:
    job_id: str
    status: str


def parse_event(raw: Any) -> CompletionEvent:
    """
    Parse one feed message into a CompletionEvent.

    Accepts bytes or str holding a JSON object with a string "correlationId"
    (or "jobId") and a string "status".

    Raises:
        MalformedEventError: For any other shape
    """
    if raw is None:
        raise MalformedEventError("empty message")
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedEventError(f"message is not UTF-8: {e}") from e
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedEventError(f"message is not JSON: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedEventError("message is not a JSON object")

    job_id = payload.get("correlationId", payload.get("jobId"))
    status = payload.get("status")
    if not isinstance(job_id, str) or not job_id:
        raise MalformedEventError("message has no string correlationId")
    if not isinstance(status, str):
        raise MalformedEventError("message has no string status")
    return CompletionEvent(job_id, status)


class CompletionFeedListener:
    """
    Long-lived subscription feeding job completions into a tracker.

    Args:
        tracker: Tracker receiving mark_completed calls
        config: Broker, topic and group settings
        consumer_factory: Builds the consumer (defaults to AIOKafkaConsumer)
        admin_factory: Builds the admin client used to ensure the topic exists
    """

    def __init__(
        self,
        tracker: CorrelationTracker,
        config: Optional[FeedConfig] = None,
        consumer_factory: Optional[Callable[[FeedConfig], Any]] = None,
        admin_factory: Optional[Callable[[FeedConfig], Any]] = None,
    ):
        self.tracker = tracker
        self.config = config or FeedConfig()
        self._consumer_factory = consumer_factory or self._default_consumer
        self._admin_factory = admin_factory or self._default_admin
        self._consumer = None
        self._task: Optional[asyncio.Task] = None
        self._started = False
        self.logger = logging.getLogger("feed")

    @staticmethod
    def _default_consumer(config: FeedConfig) -> AIOKafkaConsumer:
        return AIOKafkaConsumer(
            config.topic,
            bootstrap_servers=config.bootstrap_servers,
            group_id=config.group_id,
            client_id=config.client_id,
            auto_offset_reset="latest",
        )

    @staticmethod
    def _default_admin(config: FeedConfig) -> AIOKafkaAdminClient:
        return AIOKafkaAdminClient(
            bootstrap_servers=config.bootstrap_servers,
            client_id=config.client_id,
        )

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def handle_message(self, raw: Any) -> bool:
        """
        Handle one feed message.

        Returns:
            bool: True when the message marked a job as completed
        """
        try:
            event = parse_event(raw)
        except MalformedEventError as e:
            self.logger.warning(f"Discarding malformed feed message ({e}): {raw!r}")
            return False

        if event.status != self.config.completed_status:
            self.logger.debug(f"Feed message ignored (status {event.status}): {event.job_id}")
            return False

        self.logger.debug(f"Completion received for {event.job_id}")
        self.tracker.mark_completed(event.job_id)
        return True

    async def _ensure_topic_exists(self) -> None:
        admin = self._admin_factory(self.config)
        await admin.start()
        try:
            topics = await admin.list_topics()
            if self.config.topic not in topics:
                await admin.create_topics(
                    [NewTopic(name=self.config.topic, num_partitions=1, replication_factor=1)]
                )
                self.logger.info(f"Topic created: {self.config.topic}")
        finally:
            await admin.close()

    async def start(self) -> None:
        """
        Subscribe to the completion topic.

        Only the first call subscribes; later calls return immediately.
        """
        if self._started:
            return
        self._started = True

        try:
            if self.config.ensure_topic:
                await self._ensure_topic_exists()
            consumer = self._consumer_factory(self.config)
            await consumer.start()
        except Exception as e:
            self._started = False
            self.logger.error(f"Error starting completion feed on {self.config.topic}: {e}")
            raise

        self._consumer = consumer
        self._task = asyncio.create_task(self._consume(), name="completion-feed")
        self._task.add_done_callback(self._on_consume_done)
        self.logger.info(
            f"Listening for completions on topic {self.config.topic} (group {self.config.group_id})"
        )

    @property
    def task(self) -> Optional[asyncio.Task]:
        """The consuming task, None before start and after stop."""
        return self._task

    async def _consume(self) -> None:
        async for message in self._consumer:
            try:
                self.handle_message(message.value)
            except Exception:
                self.logger.exception("Error processing feed message")
        self.logger.info("Completion feed ended")

    def _on_consume_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error(f"Completion feed stopped with an error: {error!r}")

    async def stop(self) -> None:
        """
        Cancel the consuming task and close the consumer.

        Safe to call repeatedly, and after the consuming task died on its own.
        """
        task, self._task = self._task, None
        consumer, self._consumer = self._consumer, None
        try:
            if task is not None:
                if not task.done():
                    task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                except Exception as e:
                    self.logger.warning(f"Completion feed had already failed: {e!r}")
        finally:
            self._started = False
            if consumer is not None:
                await consumer.stop()
                self.logger.info("Completion feed consumer stopped")
