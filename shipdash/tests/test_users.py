# -*- coding: utf-8 -*-
"""
Tests de usuarios - registro, autenticación con hash Werkzeug y
resolución del usuario actual desde la sesión Flask.
"""
import pytest
from flask import Flask, session

from shipdash.auth import anonymous_user, get_user_id_from_session, stamp_user
from shipdash.errors import ConflictError, InvalidArgumentError


def test_register_and_authenticate(container, store):
    service = container.user_service
    user = service.register('  ada  ', 's3creta')
    assert user.username == 'ada'

    record = store.get('users', user.id)
    assert record['password_hash'] != 's3creta'
    assert record['password_hash'].startswith(('scrypt:', 'pbkdf2:'))

    assert service.authenticate('ada', 's3creta').id == user.id
    assert service.authenticate('ada', 'otra') is None
    assert service.authenticate('nadie', 's3creta') is None


def test_register_rejects_duplicates_and_blanks(container):
    service = container.user_service
    service.register('ada', 'x')
    with pytest.raises(ConflictError):
        service.register('ada', 'y')
    with pytest.raises(InvalidArgumentError):
        service.register('', 'y')
    with pytest.raises(InvalidArgumentError):
        service.register('bola', '')
    assert len(service.get_all_users()) == 1


def test_public_views_hide_hash(container):
    user = container.user_service.register('ada', 'x')
    assert container.user_service.get_user(user.id) == {'id': user.id, 'username': 'ada'}
    assert container.user_service.get_user(50) is None


def test_change_password(container):
    service = container.user_service
    user = service.register('ada', 'vieja')
    service.change_password(user.id, 'nueva')
    assert service.authenticate('ada', 'vieja') is None
    assert service.authenticate('ada', 'nueva') is not None


def test_stamp_user():
    assert stamp_user(None, creating=True) == {}
    assert stamp_user(4) == {'updated_by_user_id': 4}
    assert stamp_user(4, creating=True) == {'created_by_user_id': 4, 'updated_by_user_id': 4}
    assert anonymous_user() is None


def test_user_id_from_flask_session():
    app = Flask(__name__)
    app.secret_key = 'test'

    assert get_user_id_from_session() is None
    with app.test_request_context('/'):
        assert get_user_id_from_session() is None
        session['user_id'] = '7'
        assert get_user_id_from_session() == 7
        session['user_id'] = 'abc'
        assert get_user_id_from_session() is None
