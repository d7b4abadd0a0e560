from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.domain.errors import InvalidInputError
from app.infrastructure.db.models import User

# pbkdf2_sha256 - primary (no native deps)
# bcrypt - accepted for legacy hashes
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated=["bcrypt"])

MIN_PASSWORD_LENGTH = 8


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def register_user(db: Session, email: str, password: str, full_name: str, phone: str | None = None) -> User:
    email = email.strip().lower()
    if "@" not in email:
        raise InvalidInputError("Invalid email")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInputError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if get_user_by_email(db, email) is not None:
        raise InvalidInputError("Email is already registered")

    user = User(
        email=email,
        password_hash=hash_password(password),
        full_name=full_name.strip(),
        phone=(phone or "").strip() or None,
    )
    db.add(user)
    db.flush()
    db.commit()
    return user


def update_user_profile(
    db: Session,
    user: User,
    full_name: str | None = None,
    phone: str | None = None,
) -> User:
    """Edit display name and phone; an empty phone clears it."""
    if full_name is not None:
        full_name = full_name.strip()
        if not full_name:
            raise InvalidInputError("Full name cannot be empty")
        user.full_name = full_name
    if phone is not None:
        user.phone = phone.strip() or None
    db.commit()
    db.refresh(user)
    return user
