"""CLI script to provision an Admin account.

Admins cannot self-register through the API, so the first one has to
be created here.
Usage: python scripts/create_admin.py --name NAME --email EMAIL [--password PASSWORD]
"""
import sys
import argparse
import getpass
import pathlib
# Ensure `backend/` is on sys.path so `edusync` package imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from edusync.database import engine, create_db_and_tables
from edusync.errors import AppError
from edusync.security import get_token_service
from edusync import services


def main(name: str, email: str, password: str) -> int:
    """Create the Admin user and print its id; returns a process exit code."""
    create_db_and_tables()
    with Session(engine) as session:
        svc = services.AuthService(session, get_token_service())
        try:
            user = svc.create_admin(name, email, password)
        except AppError as e:
            print(f'Could not create admin: {e.message}')
            for field, messages in getattr(e, 'errors', {}).items():
                print(f'  {field}: {"; ".join(messages)}')
            return 1
    print(f'Created admin {user.email} ({user.user_id})')
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--name', required=True, help='Display name')
    parser.add_argument('--email', required=True, help='Login email')
    parser.add_argument('--password', help='Password (prompted when omitted)')
    args = parser.parse_args()
    pw = args.password or getpass.getpass('Password: ')
    sys.exit(main(args.name, args.email, pw))
