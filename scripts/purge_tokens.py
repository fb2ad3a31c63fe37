import argparse

from oaipmh.config import get_settings
from oaipmh.database import SessionLocal, engine
from oaipmh.models.base import Base
from oaipmh.services.tokens import DatabaseTokenStore


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete expired OAI-PMH resumption tokens")
    parser.add_argument("--dry-run", action="store_true", help="Only report how many tokens have expired")
    return parser.parse_args()


def main() -> int:
    settings = get_settings()
    args = parse_args()
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        store = DatabaseTokenStore(db, settings.token_ttl_seconds)
        if args.dry_run:
            print(f"expired={store.count_expired()}")
            return 0
        removed = store.purge()
        print(f"purged={removed}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
