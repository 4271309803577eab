"""JSON serialization for the review core."""

import json
from datetime import datetime, date
from enum import Enum
from typing import Any

from dataclasses import asdict

from .domain import Event, event_factory, Submission, Actor, actor_factory, \
    Notification, Change


class ReviewJSONEncoder(json.JSONEncoder):
    """Encodes domain objects in this package for serialization."""

    def default(self, obj: object) -> Any:
        """Look for domain objects, and use their dict-coercion methods."""
        if isinstance(obj, Event):
            data = asdict(obj)
            data.pop('before', None)
            data.pop('after', None)
            data['__type__'] = 'event'
        elif isinstance(obj, Submission):
            data = asdict(obj)
            data['__type__'] = 'submission'
        elif isinstance(obj, Notification):
            data = asdict(obj)
            data['__type__'] = 'notification'
        elif isinstance(obj, Change):
            data = asdict(obj)
            data['__type__'] = 'change'
        elif isinstance(obj, Actor):
            data = asdict(obj)
            data['__type__'] = 'actor'
        elif isinstance(obj, Enum):
            data = obj.value
        elif isinstance(obj, (datetime, date)):
            data = obj.isoformat()
        else:
            data = super(ReviewJSONEncoder, self).default(obj)
        return data


class ReviewJSONDecoder(json.JSONDecoder):
    """Decode :class:`.Event` and other domain objects from JSON data."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        """Pass :func:`object_hook` to the base constructor."""
        kwargs['object_hook'] = kwargs.get('object_hook', self.object_hook)
        super(ReviewJSONDecoder, self).__init__(*args, **kwargs)

    def object_hook(self, obj: dict, **extra: Any) -> Any:
        """Decode domain objects in this package."""
        kind = obj.pop('__type__', None)
        if kind == 'event':
            return event_factory(obj.pop('event_type'), **obj)
        elif kind == 'submission':
            return Submission(**obj)
        elif kind == 'notification':
            return Notification(**obj)
        elif kind == 'change':
            return Change(**obj)
        elif kind == 'actor':
            return actor_factory(**obj)
        return obj


def dumps(obj: Any) -> str:
    """Generate JSON from a Python object."""
    return json.dumps(obj, cls=ReviewJSONEncoder)


def loads(data: str) -> Any:
    """Load a Python object from JSON."""
    return json.loads(data, cls=ReviewJSONDecoder)
