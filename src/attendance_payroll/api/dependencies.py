"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendance_payroll.database import get_session_factory
from attendance_payroll.services.audit_trail import AuditContext, AuditTrail, extract_ip_address

ADMIN_ROLE = "admin"


def provide_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory dependency (overridden in tests)."""
    return get_session_factory()


SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(provide_session_factory)]


async def get_db_session(factory: SessionFactory) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_audit_trail(factory: SessionFactory) -> AuditTrail:
    """Audit trail writing through its own sessions."""
    return AuditTrail(factory)


async def get_actor(
    request: Request,
    x_actor_id: Annotated[str | None, Header()] = None,
    x_actor_role: Annotated[str | None, Header()] = None,
) -> AuditContext:
    """Identify the acting admin from headers."""
    if not x_actor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Actor-ID header is required",
        )
    try:
        actor_id = UUID(x_actor_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid X-Actor-ID format",
        )
    if (x_actor_role or "").strip().lower() != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return AuditContext(
        actor_user_id=actor_id,
        ip_address=extract_ip_address(request.headers),
        user_agent=request.headers.get("user-agent"),
    )


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Audit = Annotated[AuditTrail, Depends(get_audit_trail)]
Actor = Annotated[AuditContext, Depends(get_actor)]
