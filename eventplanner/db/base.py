import secrets

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def generate_id() -> str:
    return secrets.token_hex(16)
