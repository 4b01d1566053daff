import argparse

from unicampus.core.security import create_access_token


def main():
    parser = argparse.ArgumentParser(description="Issue a bearer token for local testing against the API.")
    parser.add_argument("user_id")
    parser.add_argument("--role", default="user", choices=["user", "admin"])
    parser.add_argument("--minutes", type=int, default=None)
    args = parser.parse_args()
    print(create_access_token(args.user_id, args.role, expires_minutes=args.minutes))


if __name__ == "__main__":
    main()
