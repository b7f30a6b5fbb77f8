"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from trip_settlement.database import init_db


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency. Uncommitted work is rolled back on close."""
    _, factory = init_db()
    async with factory() as session:
        yield session


async def get_owner_id(
    x_owner_id: Annotated[str | None, Header()] = None
) -> UUID:
    """Extract owner ID from header."""
    if not x_owner_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Owner-ID header is required",
        )
    try:
        return UUID(x_owner_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Owner-ID format",
        ) from None


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
OwnerId = Annotated[UUID, Depends(get_owner_id)]
