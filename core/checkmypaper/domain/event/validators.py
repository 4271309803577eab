"""Reusable validation routines for events."""

import html
from typing import Any, Optional

import bleach

from ... import config as defaults
from ...exceptions import ValidationError, Forbidden
from ...util import get_application_config
from ..actor import Actor


def clean_text(value: Optional[str]) -> Optional[str]:
    """
    Strip markup and surrounding whitespace from user-provided text.

    The result is plain text: characters like ``&`` and ``<`` are kept as
    they are, not as HTML entities.
    """
    if value is None:
        return None
    return html.unescape(bleach.clean(value, tags=set(), strip=True)).strip()


def must_be_requester(event: Any, actor: Actor) -> None:
    """Only requesters may perform the operation."""
    if not actor.is_requester:
        raise Forbidden(f'{event.NAME}: only requesters may do this')


def must_be_reviewer(event: Any, actor: Actor) -> None:
    """Only reviewers may perform the operation."""
    if not actor.is_reviewer:
        raise Forbidden(f'{event.NAME}: only reviewers may do this')


def title_is_valid(event: Any, title: Optional[str]) -> None:
    """The title must be present, and not too long."""
    config = get_application_config()
    title = clean_text(title)
    if not title:
        raise ValidationError(event, 'Title is required')
    ceiling = defaults.TITLE_MAX_LENGTH     # Width of the title column.
    maximum = min(int(config.get('TITLE_MAX_LENGTH', ceiling)), ceiling)
    if len(title) > maximum:
        raise ValidationError(event, 'Title is too long')


def score_is_valid(event: Any, score: Any) -> None:
    """The score must be an integer in the configured range."""
    config = get_application_config()
    if score is None:
        raise ValidationError(event, 'Score is required')
    # bool is a subclass of int, but True is not a score.
    if isinstance(score, bool) or not isinstance(score, int):
        raise ValidationError(event, f'Score must be an integer: {score!r}')
    low, high = int(config['SCORE_MIN']), int(config['SCORE_MAX'])
    if not low <= score <= high:
        raise ValidationError(event, f'Score must be between {low} and'
                                     f' {high}')


def grade_is_valid(event: Any, grade: Any) -> None:
    """The grade must be one of the configured labels."""
    grades = get_application_config()['GRADES']
    if isinstance(grades, str):
        grades = [g.strip() for g in grades.split(',')]
    if grade not in grades:
        raise ValidationError(event, f'Not a valid grade: {grade!r}')


def feedback_is_valid(event: Any, feedback: Optional[str]) -> None:
    """Feedback is optional, but must be text of bounded length."""
    if feedback is None:
        return
    if not isinstance(feedback, str):
        raise ValidationError(event, 'Feedback must be text')
    maximum = int(get_application_config()['FEEDBACK_MAX_LENGTH'])
    if len(feedback) > maximum:
        raise ValidationError(event, f'Feedback may not exceed {maximum}'
                                     ' characters')
