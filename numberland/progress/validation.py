"""Activity event validation."""

from typing import List

from numberland.core.exceptions import BatchValidationError, ValidationError
from numberland.models.events import BatchActivityEvent, QuizDetail, QuizEvent, TracingEvent


def tracing_errors(event: TracingEvent) -> List[ValidationError]:
    """Collect every problem with a tracing event."""
    errors = []

    if not event.item_label or not event.item_label.strip():
        errors.append(ValidationError("item_label", "item label cannot be empty"))
    if event.stars_achieved < 0:
        errors.append(ValidationError("stars_achieved", "stars achieved cannot be negative"))
    if event.max_stars <= 0:
        errors.append(ValidationError("max_stars", "max stars must be greater than 0"))
    if event.stars_achieved > event.max_stars:
        errors.append(ValidationError("stars_achieved", "stars achieved cannot exceed max stars"))
    if event.total_time < 0:
        errors.append(ValidationError("total_time", "total time cannot be negative"))

    return errors


def quiz_detail_errors(detail: QuizDetail, prefix: str = "") -> List[ValidationError]:
    errors = []

    if detail.total_lives <= 0:
        errors.append(ValidationError(f"{prefix}total_lives", "total lives must be greater than 0"))
    if detail.lives_remaining < 0:
        errors.append(ValidationError(f"{prefix}lives_remaining", "lives remaining cannot be negative"))
    if detail.lives_remaining > detail.total_lives:
        errors.append(ValidationError(f"{prefix}lives_remaining", "lives remaining cannot exceed total lives"))
    if detail.time_taken < 0:
        errors.append(ValidationError(f"{prefix}time_taken", "time taken cannot be negative"))
    if detail.time_given is not None and detail.time_given <= 0:
        errors.append(ValidationError(f"{prefix}time_given", "time given must be greater than 0"))
    if not 0 <= detail.score <= 100:
        errors.append(ValidationError(f"{prefix}score", "score must be between 0 and 100"))

    return errors


def quiz_errors(event: QuizEvent) -> List[ValidationError]:
    """Collect every problem with a quiz event, naming the offending detail."""
    errors = []

    if not event.item_label or not event.item_label.strip():
        errors.append(ValidationError("item_label", "item label cannot be empty"))
    if not event.quiz_details:
        errors.append(ValidationError("quiz_details", "quiz details cannot be empty"))

    for index, detail in enumerate(event.quiz_details):
        errors.extend(quiz_detail_errors(detail, prefix=f"quiz_details[{index}]."))

    return errors


def validate_tracing_event(event: TracingEvent) -> None:
    """Raise the first validation problem, if any."""
    errors = tracing_errors(event)
    if errors:
        raise errors[0]


def validate_quiz_event(event: QuizEvent) -> None:
    errors = quiz_errors(event)
    if errors:
        raise errors[0]


def batch_errors(batch: BatchActivityEvent, user_id: str) -> List[ValidationError]:
    """Collect every problem across a batch, with field paths naming the event."""
    errors = []

    if not user_id or not user_id.strip():
        errors.append(ValidationError("user_id", "user id cannot be empty"))
    elif batch.user_id and batch.user_id != user_id:
        errors.append(ValidationError("user_id", "batch user does not match the target user"))

    for index, event in enumerate(batch.tracing_activities):
        for error in tracing_errors(event):
            errors.append(ValidationError(f"tracing_activities[{index}].{error.field}", error.reason))

    for index, event in enumerate(batch.quiz_activities):
        for error in quiz_errors(event):
            errors.append(ValidationError(f"quiz_activities[{index}].{error.field}", error.reason))

    return errors


def validate_batch(batch: BatchActivityEvent, user_id: str) -> None:
    """Raise every problem in the batch at once, if any."""
    errors = batch_errors(batch, user_id)
    if errors:
        raise BatchValidationError(errors)
