import argparse
import os

from dotenv import load_dotenv

from subhub.services.token_service import TokenService


def main() -> None:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Issue a bearer token for local API calls.")
    parser.add_argument("user_id", help="User ID to embed in the token")
    parser.add_argument("--email", default=None)
    parser.add_argument("--admin", action="store_true", help="Grant administrative access")
    parser.add_argument("--hours", type=int, default=int(os.getenv("JWT_EXPIRATION_HOURS", "24")))
    args = parser.parse_args()

    service = TokenService(
        jwt_secret=os.getenv("JWT_SECRET", "change-me"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        jwt_expiration_hours=args.hours,
    )
    print(service.create_token(args.user_id, email=args.email, is_admin=args.admin))


if __name__ == "__main__":
    main()
