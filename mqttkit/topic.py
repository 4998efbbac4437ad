"""Validation of MQTT topic filters and QoS levels.

A topic filter must not be empty and may hold the multi-level wildcard
``#`` only as its last level. QoS must be 0, 1 or 2.
"""

from __future__ import annotations

from typing import Mapping


class TopicError(ValueError):
    """Raised for an invalid topic or subscription."""


class InvalidQosError(TopicError):
    def __init__(self) -> None:
        super().__init__("invalid QoS")


class InvalidTopicEmptyStringError(TopicError):
    def __init__(self) -> None:
        super().__init__("invalid Topic; empty string")


class InvalidTopicMultilevelError(TopicError):
    def __init__(self) -> None:
        super().__init__("invalid Topic; multi-level wildcard must be last level")


def validate_topic_and_qos(topic: str, qos: int) -> None:
    """Raise a TopicError if the topic filter or QoS is invalid."""
    if not topic:
        raise InvalidTopicEmptyStringError()
    *leading, _last = topic.split("/")
    if "#" in leading:
        raise InvalidTopicMultilevelError()
    if qos > 2:
        raise InvalidQosError()


def validate_subscribe_map(subs: Mapping[str, int]) -> tuple[list[str], list[int]]:
    """Validate a topic-to-QoS mapping and return its topics and QoS levels."""
    if not subs:
        raise TopicError("invalid subscription; subscribe map must not be empty")
    for topic, qos in subs.items():
        validate_topic_and_qos(topic, qos)
    return list(subs), list(subs.values())