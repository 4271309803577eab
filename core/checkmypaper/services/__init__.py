"""External service integrations."""

from .artifacts import ArtifactStore, FilesystemArtifactStore
from .stream import StreamPublisher, StreamSubscriber
