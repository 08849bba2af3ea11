# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Key/value row backing the SQL durable store."""

import uuid as uuid_lib

from sqlalchemy import String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from session_lifecycle.models.base import Base, TimestampMixin


class StorageEntry(Base, TimestampMixin):
    """One namespaced string value of the durable session store."""

    __tablename__ = "session_storage_entries"
    __table_args__ = (
        UniqueConstraint("namespace", "key", name="uq_storage_namespace_key"),
    )

    id: Mapped[uuid_lib.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid_lib.uuid4,
    )
    namespace: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
