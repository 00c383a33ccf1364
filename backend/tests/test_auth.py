"""
Signup, signin and session tests
"""
import pytest
from datetime import timedelta
from unittest.mock import patch
from httpx import AsyncClient
from sqlalchemy import func, select

from notenexus.core.security import create_access_token
from notenexus.models import User, UserRole

from helpers import DEFAULT_PASSWORD, unique_email


API = '/api/v1/users'


async def request_code(client: AsyncClient, mailer, email: str) -> str:
    response = await client.post(f'{API}/generate-otp', json={'email': email})
    assert response.status_code == 200
    return mailer.send_otp_email.call_args.args[1]


async def verify_email(client: AsyncClient, mailer, email: str):
    code = await request_code(client, mailer, email)
    response = await client.post(f'{API}/verify-otp', json={'email': email, 'code': code})
    assert response.status_code == 200


def signup_payload(email: str, role: str = 'STUDENT') -> dict:
    return {'email': email, 'name': 'Ravi Kumar', 'password': 'secret123', 'role': role}


class TestOtp:
    """Requesting and checking verification codes"""

    @pytest.mark.asyncio
    async def test_generate_otp_sends_code(self, client: AsyncClient, mailer):
        email = unique_email()
        response = await client.post(f'{API}/generate-otp', json={'email': email})

        assert response.status_code == 200
        assert response.json()['message'] == 'OTP sent to your email'
        to, code, ttl = mailer.send_otp_email.call_args.args
        assert to == email
        assert len(code) == 6 and code.isdigit()
        assert ttl == 10

    @pytest.mark.asyncio
    async def test_generate_otp_delivery_failure(self, client: AsyncClient, mailer, fake_redis):
        mailer.send_otp_email.return_value = False

        response = await client.post(f'{API}/generate-otp', json={'email': unique_email()})

        assert response.status_code == 500
        body = response.json()
        assert body['success'] is False
        assert body['error']['code'] == 'NOTIFICATION_FAILED'
        # Undeliverable code is not kept
        assert fake_redis.store == {}

    @pytest.mark.asyncio
    async def test_generate_otp_rejects_bad_email(self, client: AsyncClient):
        response = await client.post(f'{API}/generate-otp', json={'email': 'not-an-email'})

        assert response.status_code == 400
        assert response.json()['error']['code'] == 'VALIDATION_ERROR'

    @pytest.mark.asyncio
    async def test_verify_wrong_code_keeps_pending_code(self, client: AsyncClient, mailer):
        email = unique_email()
        code = await request_code(client, mailer, email)
        wrong = '000000' if code != '000000' else '111111'

        response = await client.post(f'{API}/verify-otp', json={'email': email, 'code': wrong})
        assert response.status_code == 400
        assert response.json()['error']['code'] == 'INVALID_OR_EXPIRED_OTP'

        response = await client.post(f'{API}/verify-otp', json={'email': email, 'code': code})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_verify_expired_code(self, client: AsyncClient, mailer, fake_redis):
        email = unique_email()
        code = await request_code(client, mailer, email)
        fake_redis.advance(601)

        response = await client.post(f'{API}/verify-otp', json={'email': email, 'code': code})

        assert response.status_code == 400
        assert response.json()['error']['code'] == 'INVALID_OR_EXPIRED_OTP'

    @pytest.mark.asyncio
    async def test_new_code_replaces_old_one(self, client: AsyncClient, mailer):
        email = unique_email()
        with patch('notenexus.services.verification_service.generate_otp', side_effect=['111111', '222222']):
            first = await request_code(client, mailer, email)
            second = await request_code(client, mailer, email)

        assert (first, second) == ('111111', '222222')
        stale = await client.post(f'{API}/verify-otp', json={'email': email, 'code': first})
        assert stale.status_code == 400

        response = await client.post(f'{API}/verify-otp', json={'email': email, 'code': second})
        assert response.status_code == 200


class TestSignup:
    """Account creation after email verification"""

    @pytest.mark.asyncio
    async def test_signup_after_verification(self, client: AsyncClient, mailer, session_factory):
        email = unique_email()
        await verify_email(client, mailer, email)

        response = await client.post(f'{API}/signup', json=signup_payload(email))

        assert response.status_code == 201
        data = response.json()
        assert data['token']
        assert data['user']['email'] == email
        assert data['user']['role'] == 'STUDENT'
        assert 'hashedPassword' not in data['user']

        async with session_factory() as session:
            count = (await session.execute(
                select(func.count()).select_from(User).where(User.email == email)
            )).scalar()
        assert count == 1

    @pytest.mark.asyncio
    async def test_signup_without_verification(self, client: AsyncClient):
        response = await client.post(f'{API}/signup', json=signup_payload(unique_email()))

        assert response.status_code == 403
        assert response.json()['error']['code'] == 'EMAIL_NOT_VERIFIED'

    @pytest.mark.asyncio
    async def test_signup_with_pending_code_only(self, client: AsyncClient, mailer):
        email = unique_email()
        await request_code(client, mailer, email)

        response = await client.post(f'{API}/signup', json=signup_payload(email))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_replayed_signup_is_refused(self, client: AsyncClient, mailer):
        email = unique_email()
        await verify_email(client, mailer, email)

        first = await client.post(f'{API}/signup', json=signup_payload(email))
        second = await client.post(f'{API}/signup', json=signup_payload(email))

        assert first.status_code == 201
        # The verified marker was spent by the first signup
        assert second.status_code == 403
        assert second.json()['error']['code'] == 'EMAIL_NOT_VERIFIED'

    @pytest.mark.asyncio
    async def test_signup_existing_email(self, client: AsyncClient, mailer, test_user: User, fake_redis):
        await verify_email(client, mailer, test_user.email.upper())

        response = await client.post(f'{API}/signup', json=signup_payload(test_user.email.upper()))

        assert response.status_code == 409
        assert response.json()['error']['code'] == 'EMAIL_TAKEN'
        # A refused signup leaves the verification in place
        assert f'verification:{test_user.email}' in fake_redis.store

    @pytest.mark.asyncio
    async def test_first_admin_signup(self, client: AsyncClient, mailer):
        email = unique_email()
        await verify_email(client, mailer, email)

        response = await client.post(f'{API}/signup', json=signup_payload(email, role='ADMIN'))

        assert response.status_code == 201
        assert response.json()['user']['role'] == 'ADMIN'

    @pytest.mark.asyncio
    async def test_second_admin_signup_refused(self, client: AsyncClient, mailer, admin_user: User):
        email = unique_email()
        await verify_email(client, mailer, email)

        response = await client.post(f'{API}/signup', json=signup_payload(email, role='ADMIN'))

        assert response.status_code == 409
        assert response.json()['error']['code'] == 'ADMIN_ALREADY_EXISTS'

    @pytest.mark.asyncio
    async def test_signup_short_name(self, client: AsyncClient, mailer):
        email = unique_email()
        await verify_email(client, mailer, email)
        payload = signup_payload(email)
        payload['name'] = '  Ab  '

        response = await client.post(f'{API}/signup', json=payload)

        assert response.status_code == 400
        assert response.json()['error']['code'] == 'VALIDATION_ERROR'

    @pytest.mark.asyncio
    async def test_check_admin(self, client: AsyncClient):
        response = await client.get(f'{API}/check-admin')

        assert response.status_code == 200
        assert response.json() == {'adminExists': False, 'adminCount': 0}

    @pytest.mark.asyncio
    async def test_check_admin_after_admin_exists(self, client: AsyncClient, admin_user: User):
        response = await client.get(f'{API}/check-admin')

        assert response.json() == {'adminExists': True, 'adminCount': 1}


class TestSignin:
    """Password signin"""

    @pytest.mark.asyncio
    async def test_signin_success(self, client: AsyncClient, test_user: User):
        response = await client.post(
            f'{API}/signin',
            json={'email': test_user.email, 'password': DEFAULT_PASSWORD}
        )

        assert response.status_code == 200
        data = response.json()
        assert data['message'] == 'Login successful'
        assert data['jwt']
        assert data['user']['id'] == test_user.id

    @pytest.mark.asyncio
    async def test_signin_is_case_insensitive_on_email(self, client: AsyncClient, test_user: User):
        response = await client.post(
            f'{API}/signin',
            json={'email': test_user.email.upper(), 'password': DEFAULT_PASSWORD}
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_signin_wrong_password(self, client: AsyncClient, test_user: User):
        response = await client.post(
            f'{API}/signin',
            json={'email': test_user.email, 'password': 'wrongpassword'}
        )

        assert response.status_code == 401
        assert response.json()['error']['code'] == 'INCORRECT_PASSWORD'

    @pytest.mark.asyncio
    async def test_signin_unknown_user(self, client: AsyncClient):
        response = await client.post(
            f'{API}/signin',
            json={'email': unique_email(), 'password': 'whatever1'}
        )

        assert response.status_code == 404
        assert response.json()['error']['code'] == 'USER_NOT_FOUND'

    @pytest.mark.asyncio
    async def test_signin_token_opens_profile(self, client: AsyncClient, test_user: User):
        signin = await client.post(
            f'{API}/signin',
            json={'email': test_user.email, 'password': DEFAULT_PASSWORD}
        )
        token = signin.json()['jwt']

        response = await client.get(f'{API}/profile', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 200
        assert response.json()['email'] == test_user.email


class TestSession:
    """Bearer token handling"""

    @pytest.mark.asyncio
    async def test_missing_token(self, client: AsyncClient):
        response = await client.get(f'{API}/profile')

        assert response.status_code == 401
        assert response.json()['error']['code'] == 'INVALID_TOKEN'

    @pytest.mark.asyncio
    async def test_garbage_token(self, client: AsyncClient):
        response = await client.get(f'{API}/profile', headers={'Authorization': 'Bearer not.a.jwt'})

        assert response.status_code == 401
        assert response.json()['error']['code'] == 'INVALID_TOKEN'

    @pytest.mark.asyncio
    async def test_expired_token(self, client: AsyncClient, test_user: User):
        token = create_access_token(
            {'sub': test_user.id, 'role': test_user.role.value},
            expires_delta=timedelta(minutes=-5)
        )

        response = await client.get(f'{API}/profile', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 401
        assert response.json()['error']['code'] == 'TOKEN_EXPIRED'

    @pytest.mark.asyncio
    async def test_token_for_deleted_user(self, client: AsyncClient):
        token = create_access_token({'sub': 'b7c1d8e2-0000-4000-8000-000000000000', 'role': 'STUDENT'})

        response = await client.get(f'{API}/profile', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 404
        assert response.json()['error']['code'] == 'USER_NOT_FOUND'

    @pytest.mark.asyncio
    async def test_student_cannot_use_admin_routes(self, client: AsyncClient, auth_headers):
        response = await client.get(API, headers=auth_headers)

        assert response.status_code == 403
        assert response.json()['error']['code'] == 'NOT_AUTHORIZED'

    @pytest.mark.asyncio
    async def test_admin_role_is_read_from_database(self, client: AsyncClient, test_user: User):
        # A forged role claim does not grant admin rights
        token = create_access_token({'sub': test_user.id, 'role': UserRole.ADMIN.value})

        response = await client.get(API, headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 403
