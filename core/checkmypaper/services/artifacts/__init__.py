"""
Storage for submitted, reference, and checked documents.

Documents are opaque bytes. Callers get back a locator string, which is what
gets stored on the submission. Which backend is used is controlled by the
``ARTIFACT_STORE`` parameter; see :func:`.get_store`.
"""

from .artifacts import ArtifactStore, FilesystemArtifactStore, \
    ArtifactStoreError, NoSuchArtifact, get_store, make_key, ORIGINAL, \
    REFERENCE, CHECKED, KINDS
