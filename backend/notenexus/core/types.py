"""Column helpers shared by the models"""
import uuid

from sqlalchemy import TypeDecorator, String


def generate_uuid() -> str:
    """Primary keys are UUID4 strings"""
    return str(uuid.uuid4())


class GUID(TypeDecorator):
    """UUID stored as VARCHAR(36) on every backend (PostgreSQL and SQLite alike)"""
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return str(value) if value is not None else None

    def process_result_value(self, value, dialect):
        return str(value) if value is not None else None
