from unittest import mock

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated

from apps.common import exceptions as errors
from apps.common.exceptions import dating_exception_handler


def test_domain_error_rendering():
    exc = errors.InsufficientFunds('Insufficient coins. Need 70 coins.', required=70, current=10)

    response = dating_exception_handler(exc, {})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data == {
        'error': 'Insufficient coins. Need 70 coins.',
        'code': 'insufficient_funds',
        'required': 70,
        'current': 10,
    }


def test_default_messages_and_status_codes():
    assert dating_exception_handler(errors.NotFound(), {}).status_code == status.HTTP_404_NOT_FOUND
    assert dating_exception_handler(errors.NotAParty(), {}).status_code == status.HTTP_403_FORBIDDEN
    assert errors.AlreadyInteracted().as_dict()['error'] == 'You already liked this person!'


def test_django_validation_error():
    response = dating_exception_handler(DjangoValidationError('Bad value.'), {})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data['code'] == 'validation_error'


def test_database_error_is_generic_500():
    view = mock.Mock()

    response = dating_exception_handler(DatabaseError('deadlock'), {'view': view})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.data == {'error': 'Server error'}


def test_other_errors_fall_through_to_drf():
    response = dating_exception_handler(NotAuthenticated(), {})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
