"""
Bootstrap or repair a site from the command line.

    python scripts/setup_site.py my-site --admin-email admin@example.com --admin-password ...
    python scripts/setup_site.py my-site --backfill-slugs
"""

import argparse
import asyncio
import logging
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH120

from sitecms.config import settings  # noqa: E402
from sitecms.database import AsyncSessionLocal, init_models  # noqa: E402
from sitecms.exceptions import CMSError  # noqa: E402
from sitecms.middleware.logging import setup_structured_logging  # noqa: E402
from sitecms.services import setup_service  # noqa: E402

logger = logging.getLogger("sitecms.setup")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create the defaults a site needs")
    parser.add_argument("site_id", nargs="?", default=settings.default_site_id, help="Tenant id")
    parser.add_argument("--name", help="Display name for a new website row")
    parser.add_argument("--admin-email", help="Create this admin user if missing")
    parser.add_argument("--admin-password", help="Password for a new admin user")
    parser.add_argument("--skip-content-types", action="store_true", help="Do not create the built-in content types")
    parser.add_argument("--backfill-slugs", action="store_true", help="Derive slugs for content that has none")
    parser.add_argument("--create-tables", action="store_true", help="Create missing tables first (SQLite setups)")
    return parser


async def run(args: argparse.Namespace) -> int:
    if not args.site_id:
        logger.error("No site id given and DEFAULT_SITE_ID is not set")
        return 2
    if args.admin_email and not args.admin_password:
        logger.error("--admin-password is required with --admin-email")
        return 2

    if args.create_tables:
        await init_models()

    async with AsyncSessionLocal() as db:
        try:
            await setup_service.ensure_website(db, args.site_id, args.name)

            if args.admin_email:
                user, created = await setup_service.ensure_admin_user(
                    db, args.site_id, args.admin_email, args.admin_password
                )
                logger.info(f"Admin {user.email}: {'created' if created else 'already present'}")

            if not args.skip_content_types:
                created_types = await setup_service.ensure_default_content_types(db, args.site_id)
                logger.info(f"Content types created: {', '.join(created_types) or 'none'}")

            if args.backfill_slugs:
                fixed = await setup_service.backfill_content_slugs(db, args.site_id)
                logger.info(f"Slugs backfilled: {fixed}")
        except CMSError as e:
            logger.error(f"Setup failed: {e.message}")
            return 1

    return 0


def main() -> None:
    setup_structured_logging(log_level="INFO", json_format=False)
    sys.exit(asyncio.run(run(build_parser().parse_args())))


if __name__ == "__main__":
    main()
