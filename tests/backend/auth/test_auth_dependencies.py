from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from backend.auth import jwt_handler
from backend.auth.dependencies import get_current_user, require_roles
from backend.core import config
from backend.models.user import ROLE_ADMIN


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_access_token_carries_subject_and_expiry() -> None:
    token = jwt_handler.create_access_token(subject='faculty@example.edu')

    payload = jwt_handler.decode_access_token(token)

    assert payload['sub'] == 'faculty@example.edu'
    assert 'role' not in payload
    assert payload['exp'] > payload['iat']


def test_get_current_user_resolves_user_case_insensitively(db, scholar) -> None:
    token = jwt_handler.create_access_token(subject='Scholar@Example.edu')

    user = get_current_user(credentials=_credentials(token), db=db)

    assert user.id == scholar.id


def test_get_current_user_rejects_expired_token(db, scholar) -> None:
    issued_at = datetime.now(timezone.utc) - timedelta(hours=2)
    token = jwt.encode(
        {'sub': 'scholar@example.edu', 'iat': issued_at, 'exp': issued_at + timedelta(minutes=5)},
        config.JWT_SECRET_KEY,
        algorithm=config.JWT_ALGORITHM,
    )

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(token), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token'


def test_get_current_user_rejects_token_signed_with_other_key(db, scholar) -> None:
    token = jwt.encode({'sub': 'scholar@example.edu'}, 'someone-elses-secret', algorithm='HS256')

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(token), db=db)

    assert exception_info.value.status_code == 401


def test_get_current_user_rejects_unknown_user(db) -> None:
    token = jwt_handler.create_access_token(subject='ghost@example.edu')

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(token), db=db)

    assert exception_info.value.detail == 'User not found'


def test_get_current_user_rejects_missing_subject(db) -> None:
    token = jwt.encode(
        {'exp': datetime.now(timezone.utc) + timedelta(minutes=5)},
        config.JWT_SECRET_KEY,
        algorithm=config.JWT_ALGORITHM,
    )

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(token), db=db)

    assert exception_info.value.detail == 'Invalid token subject'


def test_require_roles_blocks_other_roles(scholar, admin) -> None:
    guard = require_roles(ROLE_ADMIN)

    assert guard(current_user=admin) is admin
    with pytest.raises(HTTPException) as exception_info:
        guard(current_user=scholar)

    assert exception_info.value.status_code == 403
