"""Core module - contains the mood tracking and weekly reporting logic."""

from .errors import (
    MoodMirrorError, Unauthorized, ValidationError, NotFound,
    StoreUnavailable, MissingRecipient, DeliveryFailed,
)

__all__ = [
    'MoodMirrorError', 'Unauthorized', 'ValidationError', 'NotFound',
    'StoreUnavailable', 'MissingRecipient', 'DeliveryFailed',
]
