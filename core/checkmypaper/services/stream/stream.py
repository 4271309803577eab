"""
Kinesis integration for the change feed.

Changes are put on the stream with the entity ID as the partition key, so
that changes to a single entity are consumed in the order that they were
produced. Subscribers start reading at the tip of each shard; there is no
replay of changes produced before :meth:`.StreamSubscriber.subscribe` was
called.
"""

import time
from typing import Any, Callable, Dict, Iterator, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ... import logging
from ...domain.change import Change
from ...serializer import dumps, loads
from ...util import get_application_config, get_application_global

logger = logging.getLogger(__name__)


class PublishFailed(RuntimeError):
    """A change could not be put on the stream."""


def _get_client(config: Any) -> Any:
    return boto3.client('kinesis',
                        region_name=config['AWS_REGION'],
                        endpoint_url=config.get('KINESIS_ENDPOINT'),
                        aws_access_key_id=config['AWS_ACCESS_KEY_ID'],
                        aws_secret_access_key=config['AWS_SECRET_ACCESS_KEY'],
                        verify=config.get('KINESIS_VERIFY', True))


class StreamPublisher:
    """Puts :class:`.Change` records on the change stream."""

    def __init__(self, stream: str, client: Any) -> None:
        self.stream = stream
        self.client = client

    @classmethod
    def init_app(cls, app: Any) -> None:
        """Set default configuration params for an application instance."""
        app.config.setdefault('AWS_ACCESS_KEY_ID', '')
        app.config.setdefault('AWS_SECRET_ACCESS_KEY', '')
        app.config.setdefault('AWS_REGION', 'us-east-1')
        app.config.setdefault('KINESIS_ENDPOINT', None)
        app.config.setdefault('KINESIS_VERIFY', True)
        app.config.setdefault('KINESIS_STREAM', 'PaperChanges')

    @classmethod
    def get_session(cls) -> 'StreamPublisher':
        """Get a new session with the stream."""
        config = get_application_config()
        return cls(config['KINESIS_STREAM'], _get_client(config))

    @classmethod
    def current_session(cls) -> 'StreamPublisher':
        """Get/create :class:`.StreamPublisher` for this context."""
        g = get_application_global()
        if g is None:
            return cls.get_session()
        elif 'stream' not in g:
            g.stream = cls.get_session()
        return g.stream

    @classmethod
    def put(cls, change: Change) -> None:
        """Put a :class:`.Change` on the stream of the current session."""
        cls.current_session().put_change(change)

    def put_change(self, change: Change) -> None:
        """Put a :class:`.Change` on the stream."""
        data = bytes(dumps(change), encoding='utf-8')
        try:
            self.client.put_record(StreamName=self.stream, Data=data,
                                   PartitionKey=change.entity_id)
        except (BotoCoreError, ClientError) as e:
            raise PublishFailed(f'Could not publish change to'
                                f' {change.entity_id}') from e


class StreamSubscriber:
    """Reads :class:`.Change` records from the change stream."""

    BACKOFF = 1.0
    """Minimum wait, in seconds, after a throttled read."""

    def __init__(self, stream: str, client: Any,
                 poll_interval: float = 1.0) -> None:
        self.stream = stream
        self.client = client
        self.poll_interval = poll_interval

    @classmethod
    def get_session(cls) -> 'StreamSubscriber':
        """Get a new subscriber for the configured stream."""
        config = get_application_config()
        return cls(config['KINESIS_STREAM'], _get_client(config),
                   float(config.get('STREAM_POLL_INTERVAL', 1.0)))

    def _get_iterator(self, shard_id: str) -> str:
        return self.client.get_shard_iterator(
            StreamName=self.stream,
            ShardId=shard_id,
            ShardIteratorType='LATEST'
        )['ShardIterator']

    def _get_iterators(self) -> Dict[str, Optional[str]]:
        description = self.client.describe_stream(StreamName=self.stream)
        shards = description['StreamDescription']['Shards']
        return {shard['ShardId']: self._get_iterator(shard['ShardId'])
                for shard in shards}

    def _get_records(self, iterators: Dict[str, Optional[str]],
                     shard_id: str) -> List[Dict[str, Any]]:
        """Read the next batch from a shard, and advance its iterator."""
        try:
            response = self.client.get_records(
                ShardIterator=iterators[shard_id]
            )
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code')
            if code == 'ProvisionedThroughputExceededException':
                logger.debug('Throttled on %s; backing off', shard_id)
                time.sleep(max(self.poll_interval, self.BACKOFF))
                return []
            if code == 'ExpiredIteratorException':
                logger.debug('Iterator for %s expired; starting over at the'
                             ' tip of the shard', shard_id)
                iterators[shard_id] = self._get_iterator(shard_id)
                return []
            raise
        iterators[shard_id] = response.get('NextShardIterator')
        records: List[Dict[str, Any]] = response.get('Records', [])
        return records

    def _decode(self, record: Dict[str, Any]) -> Optional[Change]:
        try:
            change = loads(record['Data'].decode('utf-8'))
        except ValueError as e:
            logger.error('Could not decode record %s: %s',
                         record.get('SequenceNumber'), e)
            return None
        if not isinstance(change, Change):
            logger.debug('Not a change: %s', record.get('SequenceNumber'))
            return None
        return change

    def subscribe(self, entity_kind: str,
                  predicate: Optional[Callable[[Change], bool]] = None) \
            -> Iterator[Change]:
        """
        Generate changes to entities of ``entity_kind``, as they arrive.

        This is an infinite generator. To stop, just stop consuming it; to
        resume, subscribe again. Each shard is read at most once per
        ``poll_interval``; throttled reads back off and are tried again, and
        expired iterators are replaced.

        Parameters
        ----------
        entity_kind : str
            Either ``submission`` or ``notification``.
        predicate : callable
            If provided, only changes for which this returns ``True`` are
            generated.

        """
        iterators = self._get_iterators()
        while True:
            for shard_id in list(iterators):
                if iterators[shard_id] is None:    # Shard is closed.
                    continue
                for record in self._get_records(iterators, shard_id):
                    change = self._decode(record)
                    if change is None or change.entity_kind != entity_kind:
                        continue
                    if predicate is None or predicate(change):
                        yield change
            time.sleep(self.poll_interval)
