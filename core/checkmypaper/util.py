"""Access to configuration from inside and outside of a Flask app."""

from typing import Any, Mapping, Optional

from flask import current_app, has_app_context, g

from . import config


def get_application_config() -> Mapping[str, Any]:
    """
    Get the configuration of the current application, if there is one.

    Outside of an application context the defaults in :mod:`.config` are
    used, so that domain code can be exercised without an app.
    """
    if has_app_context():
        return current_app.config
    return {key: getattr(config, key) for key in dir(config) if key.isupper()}


def get_application_global() -> Optional[Any]:
    """Get the application-context global, or ``None`` outside of an app."""
    if has_app_context():
        return g
    return None
