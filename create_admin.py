#!/usr/bin/env python3
"""
Create an admin (or client) account, or reset its password.

    python create_admin.py --email ops@example.com --password 'S3cure!Pass'
"""

import argparse
import getpass
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from sqlmodel import Session

from app.application.security import Role, validate_password
from app.application.services.account_service import AccountService
from app.database import create_db_and_tables, engine
from app.exceptions import AppError
from app.infrastructure.persistence.sqlalchemy.repositories.account_repository_sql import SqlAccountRepository
from app.infrastructure.persistence.sqlalchemy.repositories.image_repository_sql import SqlImageRepository
from app.infrastructure.storage import DisabledStorageAdapter
from app.utils import hash_password

logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")
logger = logging.getLogger("create_admin")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Create or reset an account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", help="prompted for when omitted")
    parser.add_argument("--role", choices=[r.value for r in Role], default=Role.ADMIN.value)
    parser.add_argument("--reset", action="store_true", help="reset the password of an existing account")
    parser.add_argument("--skip-policy", action="store_true", help="do not enforce password complexity")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    password = args.password or getpass.getpass("Password: ")

    if not args.skip_policy:
        check = validate_password(password)
        if not check.is_valid:
            for error in check.errors:
                logger.error(error)
            return 1

    create_db_and_tables()
    with Session(engine) as session:
        accounts = SqlAccountRepository(session)
        existing = accounts.get_by_email(args.email)

        if args.reset:
            if not existing:
                logger.error(f"No account with email {args.email}")
                return 1
            accounts.set_password_hash(existing.id, hash_password(password))
            logger.info(f"Password reset for {existing.email}")
            return 0

        if existing:
            logger.error(f"{existing.email} already exists; use --reset to change its password")
            return 1

        if args.skip_policy:
            account = accounts.create(args.email, hash_password(password), args.role)
        else:
            service = AccountService(account_repo=accounts, image_repo=SqlImageRepository(session),
                                     storage=DisabledStorageAdapter())
            try:
                account = service.create_account(args.email, password, Role(args.role))
            except AppError as e:
                logger.error(e.message)
                return 1
        logger.info(f"Created {account.role} account {account.email} ({account.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
