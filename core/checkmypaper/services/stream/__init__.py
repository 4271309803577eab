"""Produce and consume entity changes on a Kinesis stream."""

from .stream import StreamPublisher, StreamSubscriber, PublishFailed
