"""Integration with S3, or a local directory, for document storage."""

import os
from typing import Any, Optional, Union

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ... import logging
from ...exceptions import ArtifactStoreError
from ...util import get_application_config, get_application_global

logger = logging.getLogger(__name__)

ORIGINAL = 'original'
REFERENCE = 'reference'
CHECKED = 'checked'
KINDS = (ORIGINAL, REFERENCE, CHECKED)


class NoSuchArtifact(ArtifactStoreError):
    """There is no document at the requested locator."""


def make_key(requester_id: str, submission_id: str, kind: str) -> str:
    """Generate the storage key for a document attached to a submission."""
    if kind not in KINDS:
        raise ValueError(f'Not a valid document kind: {kind}')
    return f'{requester_id}/{submission_id}/{kind}'


class ArtifactStore:
    """Stores documents in an S3 bucket."""

    SCHEME = 's3://'

    def __init__(self, bucket: str, aws_access_key_id: str,
                 aws_secret_access_key: str, region_name: str,
                 endpoint_url: Optional[str] = None,
                 verify: bool = True) -> None:
        self.bucket = bucket
        self.client = boto3.client('s3',
                                   region_name=region_name,
                                   endpoint_url=endpoint_url,
                                   aws_access_key_id=aws_access_key_id,
                                   aws_secret_access_key=aws_secret_access_key,
                                   verify=verify)

    @classmethod
    def init_app(cls, app: Any) -> None:
        """Set default configuration params for an application instance."""
        app.config.setdefault('AWS_ACCESS_KEY_ID', '')
        app.config.setdefault('AWS_SECRET_ACCESS_KEY', '')
        app.config.setdefault('AWS_REGION', 'us-east-1')
        app.config.setdefault('ARTIFACT_STORE', 's3')
        app.config.setdefault('ARTIFACT_BUCKET', 'papers')
        app.config.setdefault('ARTIFACT_ROOT', '/tmp/checkmypaper')
        app.config.setdefault('S3_ENDPOINT', None)
        app.config.setdefault('S3_VERIFY', True)

    @classmethod
    def get_session(cls) -> 'ArtifactStore':
        """Get a new session with the bucket."""
        config = get_application_config()
        return cls(config['ARTIFACT_BUCKET'], config['AWS_ACCESS_KEY_ID'],
                   config['AWS_SECRET_ACCESS_KEY'], config['AWS_REGION'],
                   config.get('S3_ENDPOINT'), config.get('S3_VERIFY', True))

    @classmethod
    def current_session(cls) -> 'ArtifactStore':
        """Get/create :class:`.ArtifactStore` for this context."""
        g = get_application_global()
        if g is None:
            return cls.get_session()
        elif 'artifacts' not in g:
            g.artifacts = cls.get_session()
        return g.artifacts

    def put(self, key: str, content: Union[bytes, Any]) -> str:
        """
        Store a document under ``key``, replacing anything already there.

        Parameters
        ----------
        key : str
            See :func:`.make_key`.
        content : bytes or file-like
            Document content.

        Returns
        -------
        str
            Locator for retrieving the document with :meth:`.get`.

        """
        if hasattr(content, 'read'):
            content = content.read()
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=content)
        except (BotoCoreError, ClientError) as e:
            logger.error('Could not store %s: %s', key, e)
            raise ArtifactStoreError(f'Could not store {key}') from e
        return f'{self.SCHEME}{self.bucket}/{key}'

    def get(self, locator: str) -> bytes:
        """Retrieve the document at ``locator``."""
        if not locator.startswith(self.SCHEME):
            raise NoSuchArtifact(f'Not an S3 locator: {locator}')
        bucket, _, key = locator[len(self.SCHEME):].partition('/')
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code')
            if code in ('NoSuchKey', '404'):
                raise NoSuchArtifact(f'No document at {locator}') from e
            logger.error('Could not retrieve %s: %s', locator, e)
            raise ArtifactStoreError(f'Could not retrieve {locator}') from e
        except BotoCoreError as e:
            logger.error('Could not retrieve %s: %s', locator, e)
            raise ArtifactStoreError(f'Could not retrieve {locator}') from e
        return response['Body'].read()


class FilesystemArtifactStore:
    """Stores documents in a local directory tree. Useful for development."""

    SCHEME = 'file://'

    def __init__(self, root: str) -> None:
        self.root = os.path.abspath(root)

    @classmethod
    def current_session(cls) -> 'FilesystemArtifactStore':
        """Get a store rooted at ``ARTIFACT_ROOT``."""
        return cls(get_application_config()['ARTIFACT_ROOT'])

    def _path(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self.root, key))
        if os.path.commonpath([self.root, path]) != self.root \
                or path == self.root:
            raise ArtifactStoreError(f'Key escapes the document root: {key}')
        return path

    def put(self, key: str, content: Union[bytes, Any]) -> str:
        """Store a document under ``key``, replacing anything already there."""
        if hasattr(content, 'read'):
            content = content.read()
        path = self._path(key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'wb') as f:
                f.write(content)
        except OSError as e:
            logger.error('Could not store %s: %s', key, e)
            raise ArtifactStoreError(f'Could not store {key}') from e
        return f'{self.SCHEME}{key}'

    def get(self, locator: str) -> bytes:
        """Retrieve the document at ``locator``."""
        if not locator.startswith(self.SCHEME):
            raise NoSuchArtifact(f'Not a file locator: {locator}')
        path = self._path(locator[len(self.SCHEME):])
        if not os.path.exists(path):
            raise NoSuchArtifact(f'No document at {locator}')
        try:
            with open(path, 'rb') as f:
                return f.read()
        except OSError as e:
            logger.error('Could not retrieve %s: %s', locator, e)
            raise ArtifactStoreError(f'Could not retrieve {locator}') from e


def get_store() -> Union[ArtifactStore, FilesystemArtifactStore]:
    """Get the document store selected by ``ARTIFACT_STORE``."""
    backend = get_application_config().get('ARTIFACT_STORE', 's3')
    if backend == 'filesystem':
        return FilesystemArtifactStore.current_session()
    elif backend == 's3':
        return ArtifactStore.current_session()
    raise ArtifactStoreError(f'Unknown document store: {backend}')
