"""JSON API for the review core. See :func:`.factory.create_web_app`."""
