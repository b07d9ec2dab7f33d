"""
Domain Errors
==============
Every recoverable business failure raised by the service layer.

Services raise these; views stay thin and let the DRF exception handler
below turn them into `{"error": ..., "code": ...}` responses with the
right status code.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DatingError(Exception):
    """
    Base class for errors that the caller can recover from.

    Any keyword arguments are returned to the client alongside the message
    (e.g. required/current coins) so it can correct the request or retry.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'error'
    default_message = 'Request could not be completed.'

    def __init__(self, message=None, **extra):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def as_dict(self):
        return {'error': self.message, 'code': self.code, **self.extra}


# ============================================================================
# INPUT / ACCESS
# ============================================================================

class ValidationError(DatingError):
    code = 'validation_error'
    default_message = 'Invalid input.'


class NotFound(DatingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'not_found'
    default_message = 'Not found.'


class Unauthorized(DatingError):
    status_code = status.HTTP_403_FORBIDDEN
    code = 'unauthorized'
    default_message = 'You are not allowed to do that.'


class NotAParty(Unauthorized):
    code = 'not_a_party'
    default_message = 'You are not part of this session.'


class ProfileIncomplete(DatingError):
    code = 'profile_incomplete'
    default_message = 'Please complete your dating profile first.'


# ============================================================================
# ECONOMY
# ============================================================================

class InsufficientFunds(DatingError):
    code = 'insufficient_funds'
    default_message = 'Insufficient coins.'


class NoLikesRemaining(DatingError):
    code = 'no_likes_remaining'
    default_message = 'No likes remaining. Wait for regeneration or buy more!'


class NoSlotsAvailable(DatingError):
    code = 'no_slots_available'
    default_message = 'No available chat slots. Buy more slots!'


class RewardUnavailable(DatingError):
    code = 'reward_unavailable'
    default_message = 'Reward already claimed.'


# ============================================================================
# INTERACTIONS
# ============================================================================

class AlreadyInteracted(DatingError):
    code = 'already_interacted'
    default_message = 'You already liked this person!'


class AlreadyRevealed(DatingError):
    code = 'already_revealed'
    default_message = 'Profile already revealed.'


class RevealRequired(DatingError):
    code = 'reveal_required'
    default_message = 'Must reveal profile first.'


class AlreadyChatting(DatingError):
    code = 'already_chatting'
    default_message = 'Chat already started.'


class NotActive(DatingError):
    code = 'not_active'
    default_message = 'Chat is not active.'


# ============================================================================
# BLIND DATING
# ============================================================================

class AlreadyInSession(DatingError):
    code = 'already_in_session'
    default_message = 'You are already in an active blind date session.'


class SessionExpired(DatingError):
    code = 'session_expired'
    default_message = "Session has ended. Time's up!"


class ChoiceAlreadyRecorded(DatingError):
    code = 'choice_already_recorded'
    default_message = 'Choice already recorded.'


# ============================================================================
# DRF EXCEPTION HANDLER
# ============================================================================

def dating_exception_handler(exc, context):
    """
    Render domain errors, Django validation errors and unexpected database
    failures; defer everything else to DRF's default handler.
    """
    if isinstance(exc, DatingError):
        return Response(exc.as_dict(), status=exc.status_code)

    if isinstance(exc, DjangoValidationError):
        return Response(
            {'error': ' '.join(exc.messages), 'code': 'validation_error'},
            status=status.HTTP_400_BAD_REQUEST
        )

    if isinstance(exc, DatabaseError):
        view = context.get('view')
        logger.exception(f"Database error in {view.__class__.__name__ if view else 'unknown view'}")
        return Response(
            {'error': 'Server error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return exception_handler(exc, context)
