"""Review core configuration parameters."""

from os import environ
import warnings

LOGLEVEL = int(environ.get('LOGLEVEL', '20'))
"""
Logging verbosity.

See `https://docs.python.org/3/library/logging.html#levels`_.
"""

JWT_SECRET = environ.get('JWT_SECRET')
"""Secret key for signing + verifying authentication JWTs."""

if not JWT_SECRET:
    warnings.warn('JWT_SECRET is not set; authn/z may not work correctly!')


# --- GRADING PARAMETERS ---

SCORE_MIN = int(environ.get('SCORE_MIN', '0'))
"""Lowest score that a reviewer may award."""

SCORE_MAX = int(environ.get('SCORE_MAX', '100'))
"""Highest score that a reviewer may award."""

GRADES = tuple(grade.strip() for grade
               in environ.get('GRADES', 'A+,A,B+,B,C+,C,D,F').split(',')
               if grade.strip())
"""Grade labels that a reviewer may assign when finalizing a submission."""

FEEDBACK_MAX_LENGTH = int(environ.get('FEEDBACK_MAX_LENGTH', '5000'))
"""Maximum number of characters of reviewer feedback."""

TITLE_MAX_LENGTH = int(environ.get('TITLE_MAX_LENGTH', '255'))
"""
Maximum number of characters in a submission title.

This also sets the width of the title column, so it is read from the
environment when tables are created. An app may lower it, but not raise it.
"""


# --- DATABASE CONFIGURATION ---

REVIEW_DATABASE_URI = environ.get('REVIEW_DATABASE_URI', 'sqlite://')
"""Full database URI for submission, notification, and event records."""

SQLALCHEMY_TRACK_MODIFICATIONS = False
"""Track modifications feature should always be disabled."""


# --- AWS CONFIGURATION ---

AWS_ACCESS_KEY_ID = environ.get('AWS_ACCESS_KEY_ID', 'nope')
"""Access key for requests to AWS services."""

AWS_SECRET_ACCESS_KEY = environ.get('AWS_SECRET_ACCESS_KEY', 'nope')
"""Secret auth key for requests to AWS services."""

AWS_REGION = environ.get('AWS_REGION', 'us-east-1')
"""Default region for calling AWS services."""


# --- ARTIFACT STORE CONFIGURATION ---

ARTIFACT_STORE = environ.get('ARTIFACT_STORE', 's3')
"""
Backend used to store submitted and checked documents.

Either ``s3`` or ``filesystem``.
"""

ARTIFACT_BUCKET = environ.get('ARTIFACT_BUCKET', 'papers')
"""S3 bucket in which documents are stored."""

ARTIFACT_ROOT = environ.get('ARTIFACT_ROOT', '/tmp/checkmypaper')
"""Base directory for documents when ``ARTIFACT_STORE=filesystem``."""

S3_ENDPOINT = environ.get('S3_ENDPOINT', None)
"""
Alternate endpoint for connecting to S3.

If ``None``, uses the boto3 defaults for the :const:`AWS_REGION`. This is here
mainly to support development with localstack or other mocking frameworks.
"""

S3_VERIFY = bool(int(environ.get('S3_VERIFY', '1')))
"""Enable/disable TLS certificate verification when connecting to S3."""


# --- KINESIS CONFIGURATION ---

KINESIS_STREAM = environ.get("KINESIS_STREAM", "PaperChanges")
"""Name of the stream on which to produce and consume change events."""

KINESIS_ENDPOINT = environ.get("KINESIS_ENDPOINT", None)
"""
Alternate endpoint for connecting to Kinesis.

If ``None``, uses the boto3 defaults for the :const:`AWS_REGION`.
"""

KINESIS_VERIFY = bool(int(environ.get("KINESIS_VERIFY", "1")))
"""
Enable/disable TLS certificate verification when connecting to Kinesis.

This is here support development with localstack or other mocking frameworks.
"""

if not KINESIS_VERIFY or not S3_VERIFY:
    warnings.warn('Certificate verification for AWS services is disabled;'
                  ' this should not be disabled in production.')

STREAM_POLL_INTERVAL = float(environ.get('STREAM_POLL_INTERVAL', '1.0'))
"""Seconds to wait between reads when a change feed subscriber is idle."""


# --- ASYNC NOTIFICATION DELIVERY ---

ENABLE_ASYNC = bool(int(environ.get('ENABLE_ASYNC', '0')))
"""If set, notifications are delivered by the worker instead of in-thread."""

BROKER_URL = environ.get('BROKER_URL', 'redis://localhost:6379/0')
"""Celery broker for asynchronous notification delivery."""

RESULT_BACKEND = environ.get('RESULT_BACKEND', 'redis://localhost:6379/0')
"""Celery result backend."""

NOTIFICATION_RETRIES = int(environ.get('NOTIFICATION_RETRIES', '3'))
"""Number of attempts made to deliver a notification."""

NOTIFICATION_RETRY_DELAY = float(environ.get('NOTIFICATION_RETRY_DELAY', '1'))
"""Delay in seconds between notification delivery attempts."""
