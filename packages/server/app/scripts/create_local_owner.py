"""
Script to create a local user with a password and an organization they own.

Usage:
    python -m app.scripts.create_local_owner --email ada@example.com --password secret123 --slug acme
"""

import argparse
import asyncio

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.database import get_session_context, init_db
from app.core.identity import hash_password
from app.core.logging import configure_logging
from app.models.organization import Organization
from app.models.user import User
from app.services import organizations as org_service
from orghub_shared.schemas.organizations import OrganizationCreate

log = structlog.get_logger()
settings = get_settings()


async def bootstrap_owner(
    db: AsyncSession,
    email: str,
    password: str,
    slug: str,
    name: str | None = None,
) -> tuple[User, Organization]:
    """Ensure the user and their organization exist. Safe to run repeatedly."""
    email = email.lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        user = User(email=email, name=name or email.split("@")[0], password_hash=hash_password(password))
        db.add(user)
        await db.flush()
        log.info("bootstrap.user_created", email=email)

    result = await db.execute(select(Organization).where(Organization.slug == slug))
    org = result.scalar_one_or_none()
    if org is None:
        org, _ = await org_service.create_organization(
            db, user.id, OrganizationCreate(name=slug.replace("-", " ").title(), slug=slug)
        )
        log.info("bootstrap.org_created", slug=slug, owner=email)

    return user, org


async def main(email: str, password: str, slug: str) -> None:
    await init_db()
    async with get_session_context() as db:
        await bootstrap_owner(db, email, password, slug)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a local user who owns an organization.")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument("--password", required=True, help="Password for the user")
    parser.add_argument("--slug", default="default", help="Slug of the organization to create")

    args = parser.parse_args()

    configure_logging(settings.log_level, "text")
    asyncio.run(main(args.email, args.password, args.slug))
