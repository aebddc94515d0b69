"""
Configuration settings for the completion feed.

The render service publishes one message per finished job on a Kafka topic.
"""

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _split_brokers(value: str) -> List[str]:
    return [broker.strip() for broker in value.split(",") if broker.strip()]


@dataclass
class FeedConfig:
    """Configuration for the Kafka completion feed"""

    brokers: List[str] = field(
        default_factory=lambda: _split_brokers(os.getenv("KAFKA_BROKERS", "localhost:9092"))
    )
    topic: str = os.getenv("VIDEO_COMPLETION_GATHER_TOPIC", "video-completion-topic")
    group_id: str = os.getenv("KAFKA_GROUP_ID", "video-manager-group")
    client_id: str = os.getenv("KAFKA_CLIENT_ID", "podreel")

    # Create the topic on start when it does not exist yet
    ensure_topic: bool = os.getenv("KAFKA_ENSURE_TOPIC", "true").lower() == "true"

    # Status value meaning "job finished"
    completed_status: str = "completed"

    @property
    def bootstrap_servers(self) -> str:
        return ",".join(self.brokers)

    def validate(self) -> List[str]:
        errors = []
        if not self.brokers:
            errors.append("KAFKA_BROKERS must list at least one broker")
        if not self.topic:
            errors.append("VIDEO_COMPLETION_GATHER_TOPIC must not be empty")
        return errors
