"""
Print an access token for local testing.

Usage:
    python scripts/issue_token.py --user alice --role admin --email alice@example.com
"""
import argparse
import os
import sys

# Ensure backend/ is on sys.path so config/middleware can be imported
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from middleware.auth import issue_access_token  # noqa: E402


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Issue a Binary Craft access token")
    parser.add_argument("--user", required=True, help="Token subject (user id)")
    parser.add_argument("--role", choices=["user", "admin"], default="user")
    parser.add_argument("--email", default=None)
    parser.add_argument("--name", default=None)
    parser.add_argument("--ttl", type=int, default=None, help="Lifetime in minutes")
    args = parser.parse_args(argv)

    token = issue_access_token(
        user_id=args.user,
        role=args.role,
        email=args.email,
        name=args.name,
        ttl_minutes=args.ttl,
    )
    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
