"""Tests for :mod:`checkmypaper.services.stream`."""

from itertools import islice
from unittest import TestCase, mock

from botocore.exceptions import ClientError
from flask import Flask

from ....domain.change import Change
from ....serializer import dumps
from .. import stream
from ..stream import StreamPublisher, StreamSubscriber, PublishFailed


def _record(change: Change, sequence: str) -> dict:
    return {'Data': dumps(change).encode('utf-8'), 'SequenceNumber': sequence,
            'PartitionKey': change.entity_id}


class TestPublish(TestCase):
    """Changes are put on the stream."""

    def setUp(self):
        """Create an app for context."""
        self.app = Flask('test')
        StreamPublisher.init_app(self.app)
        self.app.config['KINESIS_STREAM'] = 'TestChanges'

    @mock.patch(f'{stream.__name__}.boto3')
    def test_put(self, mock_boto3):
        """The change is partitioned by the entity that changed."""
        client = mock.MagicMock()
        mock_boto3.client.return_value = client
        change = Change('submission', 's1', 'updated')
        with self.app.app_context():
            StreamPublisher.put(change)

        self.assertEqual(client.put_record.call_count, 1)
        kwargs = client.put_record.call_args[1]
        self.assertEqual(kwargs['StreamName'], 'TestChanges')
        self.assertEqual(kwargs['PartitionKey'], 's1')
        self.assertIn(b'"entity_id": "s1"', kwargs['Data'])

    @mock.patch(f'{stream.__name__}.boto3')
    def test_put_fails(self, mock_boto3):
        """:class:`.PublishFailed` is raised if the stream refuses."""
        client = mock.MagicMock()
        client.put_record.side_effect = ClientError(
            {'Error': {'Code': 'ResourceNotFoundException'}}, 'PutRecord'
        )
        mock_boto3.client.return_value = client
        with self.app.app_context():
            with self.assertRaises(PublishFailed):
                StreamPublisher.put(Change('submission', 's1', 'created'))

    @mock.patch(f'{stream.__name__}.boto3')
    def test_session_per_context(self, mock_boto3):
        """The client is reused within an application context."""
        with self.app.app_context():
            first = StreamPublisher.current_session()
            self.assertIs(StreamPublisher.current_session(), first)
        self.assertEqual(mock_boto3.client.call_count, 1)


class TestSubscribe(TestCase):
    """Subscribers get the changes that they are interested in."""

    def setUp(self):
        """The stream has a single shard."""
        self.client = mock.MagicMock()
        self.client.describe_stream.return_value = {
            'StreamDescription': {'Shards': [{'ShardId': 'shard-0'}]}
        }
        self.client.get_shard_iterator.return_value = {'ShardIterator': 'i0'}
        self.subscriber = StreamSubscriber('TestChanges', self.client,
                                           poll_interval=0)

    def test_subscribe(self):
        """Only changes of the requested kind are generated, in order."""
        self.client.get_records.side_effect = [
            {'Records': [
                _record(Change('submission', 's1', 'created'), '1'),
                _record(Change('notification', 'n1', 'created'), '2'),
                {'Data': b'not json', 'SequenceNumber': '3'},
            ], 'NextShardIterator': 'i1'},
            {'Records': [], 'NextShardIterator': 'i2'},
            {'Records': [
                _record(Change('submission', 's1', 'updated'), '4'),
            ], 'NextShardIterator': 'i3'},
        ]
        changes = list(islice(self.subscriber.subscribe('submission'), 2))
        self.assertEqual([(c.entity_id, c.change_kind) for c in changes],
                         [('s1', 'created'), ('s1', 'updated')])
        self.client.get_shard_iterator.assert_called_once_with(
            StreamName='TestChanges', ShardId='shard-0',
            ShardIteratorType='LATEST'
        )
        iterators = [c[1]['ShardIterator']
                     for c in self.client.get_records.call_args_list]
        self.assertEqual(iterators, ['i0', 'i1', 'i2'])

    def test_predicate(self):
        """A predicate narrows down the changes that are generated."""
        self.client.get_records.side_effect = [
            {'Records': [
                _record(Change('submission', 's1', 'updated'), '1'),
                _record(Change('submission', 's2', 'updated'), '2'),
            ], 'NextShardIterator': 'i1'},
        ]
        changes = self.subscriber.subscribe(
            'submission', lambda change: change.entity_id == 's2'
        )
        self.assertEqual(next(changes).entity_id, 's2')

    @mock.patch(f'{stream.__name__}.time')
    def test_idle(self, mock_time):
        """The subscriber waits between reads when nothing is happening."""
        self.client.get_records.side_effect = [
            {'Records': [], 'NextShardIterator': 'i1'},
            {'Records': [
                _record(Change('submission', 's1', 'updated'), '1'),
            ], 'NextShardIterator': 'i2'},
        ]
        next(self.subscriber.subscribe('submission'))
        mock_time.sleep.assert_called_once_with(0)

    @mock.patch(f'{stream.__name__}.time')
    def test_throttled(self, mock_time):
        """A throttled read backs off, and the feed carries on."""
        self.client.get_records.side_effect = [
            ClientError(
                {'Error': {'Code': 'ProvisionedThroughputExceededException'}},
                'GetRecords'
            ),
            {'Records': [
                _record(Change('submission', 's1', 'updated'), '1'),
            ], 'NextShardIterator': 'i1'},
        ]
        change = next(self.subscriber.subscribe('submission'))
        self.assertEqual(change.entity_id, 's1')
        iterators = [c[1]['ShardIterator']
                     for c in self.client.get_records.call_args_list]
        self.assertEqual(iterators, ['i0', 'i0'], 'Same position is re-read')
        waits = [c[0][0] for c in mock_time.sleep.call_args_list]
        self.assertIn(StreamSubscriber.BACKOFF, waits)

    @mock.patch(f'{stream.__name__}.time')
    def test_expired_iterator(self, mock_time):
        """An expired iterator is replaced with a fresh one."""
        self.client.get_shard_iterator.side_effect = [
            {'ShardIterator': 'i0'}, {'ShardIterator': 'fresh'}
        ]
        self.client.get_records.side_effect = [
            ClientError({'Error': {'Code': 'ExpiredIteratorException'}},
                        'GetRecords'),
            {'Records': [
                _record(Change('submission', 's1', 'updated'), '1'),
            ], 'NextShardIterator': 'i1'},
        ]
        next(self.subscriber.subscribe('submission'))
        iterators = [c[1]['ShardIterator']
                     for c in self.client.get_records.call_args_list]
        self.assertEqual(iterators, ['i0', 'fresh'])

    @mock.patch(f'{stream.__name__}.time')
    def test_other_errors(self, mock_time):
        """Other errors end the feed; subscribe again to resume."""
        self.client.get_records.side_effect = ClientError(
            {'Error': {'Code': 'ResourceNotFoundException'}}, 'GetRecords'
        )
        with self.assertRaises(ClientError):
            next(self.subscriber.subscribe('submission'))

    @mock.patch(f'{stream.__name__}.time')
    def test_busy(self, mock_time):
        """The subscriber waits between reads even when records keep coming."""
        self.subscriber.poll_interval = 0.5
        self.client.get_records.side_effect = [
            {'Records': [
                _record(Change('submission', 's1', 'updated'), '1'),
            ], 'NextShardIterator': 'i1'},
            {'Records': [
                _record(Change('submission', 's2', 'updated'), '2'),
            ], 'NextShardIterator': 'i2'},
        ]
        changes = list(islice(self.subscriber.subscribe('submission'), 2))
        self.assertEqual([c.entity_id for c in changes], ['s1', 's2'])
        mock_time.sleep.assert_called_once_with(0.5)
