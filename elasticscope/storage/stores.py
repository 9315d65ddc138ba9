"""
Durable CRUD for connection profiles and saved queries.

The connection store owns the encryption boundary: plaintext passwords go
in, only cipher tokens are written, and revealing a stored password is the
session manager's job via ``reveal_password``.
"""

from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import InternalError
from ..models.connection import (
    ConnectionInput,
    ConnectionProfile,
    SavedQuery,
    SavedQueryInput,
)
from ..security.cipher import CredentialCipher
from ..utils.logging import get_logger
from .database import Database
from .tables import DEFAULT_COLOR, ConnectionRecord, SavedQueryRecord

logger = get_logger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


class ConnectionStore:
    """Connection profile repository."""

    def __init__(self, database: Database, cipher: CredentialCipher):
        self._db = database
        self._cipher = cipher

    def _seal(self, password: str | None) -> str | None:
        return self._cipher.encrypt(password) if password else None

    def reveal_password(self, profile: ConnectionProfile) -> str | None:
        """Return the plaintext password of a stored profile, if it has one."""
        if not profile.password:
            return None
        return self._cipher.decrypt(profile.password)

    async def list(self) -> list[ConnectionProfile]:
        try:
            async with self._db.session() as session:
                rows = await session.scalars(
                    select(ConnectionRecord).order_by(ConnectionRecord.name.asc())
                )
                return [ConnectionProfile.model_validate(row) for row in rows]
        except SQLAlchemyError as e:
            raise InternalError(str(e), original_error=e, component="connection_store") from e

    async def get(self, connection_id: int) -> ConnectionProfile | None:
        try:
            async with self._db.session() as session:
                row = await session.get(ConnectionRecord, connection_id)
                return ConnectionProfile.model_validate(row) if row else None
        except SQLAlchemyError as e:
            raise InternalError(str(e), original_error=e, component="connection_store") from e

    async def create(self, data: ConnectionInput) -> ConnectionProfile:
        """
        Persist a new profile, encrypting the password if one was given.

        ``name`` and ``url`` are expected to have passed
        ``validate_connection_input`` already.
        """
        now = _now()
        record = ConnectionRecord(
            name=data.name,
            url=data.url,
            username=data.username or None,
            password=self._seal(data.password),
            color=data.color or DEFAULT_COLOR,
            created_at=now,
            updated_at=now,
        )
        try:
            async with self._db.session() as session:
                session.add(record)
                await session.commit()
                await session.refresh(record)
                profile = ConnectionProfile.model_validate(record)
        except SQLAlchemyError as e:
            raise InternalError(str(e), original_error=e, component="connection_store") from e

        logger.info(
            "Connection profile created",
            extra={"connection_id": profile.id, "has_password": profile.password is not None},
        )
        return profile

    async def update(self, connection_id: int, data: ConnectionInput) -> ConnectionProfile | None:
        """
        Apply a partial update.

        Omitted fields keep their stored value. The password is three-way:
        omitted keeps the existing token untouched, empty clears it, and a
        non-empty value is encrypted into a fresh token.

        Returns:
            The updated profile, or None if it does not exist
        """
        supplied = data.model_fields_set
        try:
            async with self._db.session() as session:
                record = await session.get(ConnectionRecord, connection_id)
                if record is None:
                    return None

                if data.name is not None:
                    record.name = data.name
                if data.url is not None:
                    record.url = data.url
                if "username" in supplied:
                    record.username = data.username or None
                if "password" in supplied:
                    record.password = self._seal(data.password)
                if data.color is not None:
                    record.color = data.color
                record.updated_at = _now()

                await session.commit()
                await session.refresh(record)
                profile = ConnectionProfile.model_validate(record)
        except SQLAlchemyError as e:
            raise InternalError(str(e), original_error=e, component="connection_store") from e

        logger.info(
            "Connection profile updated",
            extra={"connection_id": connection_id, "password_changed": "password" in supplied},
        )
        return profile

    async def delete(self, connection_id: int) -> bool:
        """Delete a profile. Returns False if it did not exist."""
        try:
            async with self._db.session() as session:
                result = await session.execute(
                    delete(ConnectionRecord).where(ConnectionRecord.id == connection_id)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise InternalError(str(e), original_error=e, component="connection_store") from e
        return result.rowcount > 0


class SavedQueryStore:
    """Saved REST query repository. Queries hold no secrets."""

    def __init__(self, database: Database):
        self._db = database

    async def list(self) -> list[SavedQuery]:
        try:
            async with self._db.session() as session:
                rows = await session.scalars(
                    select(SavedQueryRecord).order_by(SavedQueryRecord.name.asc())
                )
                return [SavedQuery.model_validate(row) for row in rows]
        except SQLAlchemyError as e:
            raise InternalError(str(e), original_error=e, component="query_store") from e

    async def get(self, query_id: int) -> SavedQuery | None:
        try:
            async with self._db.session() as session:
                row = await session.get(SavedQueryRecord, query_id)
                return SavedQuery.model_validate(row) if row else None
        except SQLAlchemyError as e:
            raise InternalError(str(e), original_error=e, component="query_store") from e

    async def create(self, data: SavedQueryInput) -> SavedQuery:
        now = _now()
        record = SavedQueryRecord(
            name=data.name,
            method=data.method,
            path=data.path,
            body=data.body or None,
            created_at=now,
            updated_at=now,
        )
        try:
            async with self._db.session() as session:
                session.add(record)
                await session.commit()
                await session.refresh(record)
                return SavedQuery.model_validate(record)
        except SQLAlchemyError as e:
            raise InternalError(str(e), original_error=e, component="query_store") from e

    async def update(self, query_id: int, data: SavedQueryInput) -> SavedQuery | None:
        supplied = data.model_fields_set
        try:
            async with self._db.session() as session:
                record = await session.get(SavedQueryRecord, query_id)
                if record is None:
                    return None

                if data.name is not None:
                    record.name = data.name
                if data.method is not None:
                    record.method = data.method
                if data.path is not None:
                    record.path = data.path
                if "body" in supplied:
                    record.body = data.body
                record.updated_at = _now()

                await session.commit()
                await session.refresh(record)
                return SavedQuery.model_validate(record)
        except SQLAlchemyError as e:
            raise InternalError(str(e), original_error=e, component="query_store") from e

    async def delete(self, query_id: int) -> bool:
        try:
            async with self._db.session() as session:
                result = await session.execute(
                    delete(SavedQueryRecord).where(SavedQueryRecord.id == query_id)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise InternalError(str(e), original_error=e, component="query_store") from e
        return result.rowcount > 0
