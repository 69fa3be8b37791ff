"""User and resume persistence on top of a SQLAlchemy session."""
from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hiremind.db import Resume, User
from hiremind.errors import AuthenticationError, ConflictError
from hiremind.log import get_logger
from hiremind.security import encrypt_secret, hash_password, verify_password

log = get_logger(__name__)


class UserStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_email(self, email: str) -> User | None:
        return self.session.scalar(select(User).where(User.email == email.strip().lower()))

    def get(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def create(self, name: str, email: str, password: str, llm_api_key: str) -> User:
        if self.find_by_email(email):
            raise ConflictError("User with this email already exists")
        user = User(
            name=name.strip(),
            email=email.strip().lower(),
            password_hash=hash_password(password),
            llm_api_key_encrypted=encrypt_secret(llm_api_key),
        )
        self.session.add(user)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # a concurrent signup won the unique index on email
            raise ConflictError("User with this email already exists") from exc
        log.info("Registered user id=%d", user.id)
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = self.find_by_email(email)
        # same message for unknown email and wrong password
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        return user


class ResumeStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, user_id: int, file_name: str, file_path: str, extracted_data: dict[str, Any] | None) -> Resume:
        resume = Resume(
            user_id=user_id,
            file_name=file_name,
            file_path=file_path,
            extracted_data=extracted_data,
        )
        self.session.add(resume)
        self.session.flush()
        log.info("Stored resume id=%d for user id=%d", resume.id, user_id)
        return resume

    def find_by_id(self, resume_id: int, user_id: int) -> Resume | None:
        return self.session.scalar(
            select(Resume).where(Resume.id == resume_id, Resume.user_id == user_id)
        )

    def find_latest_for_user(self, user_id: int) -> Resume | None:
        return self.session.scalar(
            select(Resume)
            .where(Resume.user_id == user_id)
            .order_by(Resume.uploaded_at.desc(), Resume.id.desc())
            .limit(1)
        )

    def list_for_user(self, user_id: int) -> list[Resume]:
        return list(
            self.session.scalars(
                select(Resume)
                .where(Resume.user_id == user_id)
                .order_by(Resume.uploaded_at.desc(), Resume.id.desc())
            )
        )

    def update_extracted_data(self, resume: Resume, extracted_data: dict[str, Any]) -> Resume:
        resume.extracted_data = extracted_data
        self.session.flush()
        return resume

    def delete(self, resume: Resume) -> None:
        self.session.delete(resume)
        self.session.flush()

    def all_file_paths(self) -> set[str]:
        return set(self.session.scalars(select(Resume.file_path)))
