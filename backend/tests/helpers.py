"""Small helpers shared by the test modules"""
from faker import Faker

from notenexus.core.security import create_user_token
from notenexus.models import User

fake = Faker()

DEFAULT_PASSWORD = 'password123'


def unique_email() -> str:
    return f"{fake.unique.user_name()}@example.com"


def bearer(user: User) -> dict:
    return {'Authorization': f'Bearer {create_user_token(user.id, user.role.value)}'}


def upload(filename: str = 'notes.pdf', content: bytes = b'%PDF-1.4 lecture notes',
           content_type: str = 'application/pdf') -> dict:
    """`files=` argument for a multipart upload"""
    return {'file': (filename, content, content_type)}
