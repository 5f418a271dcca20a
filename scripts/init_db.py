#!/usr/bin/env python3
"""
MongoDB Database Initialization Script for Tubely.

Connects with the application settings (environment variables or ``.env``),
creates the ``videos`` collection indexes and optionally seeds a draft video
for a user, printing a bearer token for that user so the upload endpoints can
be exercised by hand. Safe to run repeatedly.

Usage:
    python scripts/init_db.py [options]

Options:
    --drop              Drop the videos collection first (WARNING: destructive)
    --seed-user ID      Create a draft video owned by ID and print a token for ID
    --title TITLE       Title of the seeded draft video
    --verbose           Display detailed operation logs

Environment Variables:
    MONGODB_URI         MongoDB connection URI (default: mongodb://localhost:27017)
    MONGODB_DB_NAME     Database name (default: tubely)
    JWT_SECRET          Secret used to sign the printed token
"""

import argparse
import asyncio
import logging
import sys

from datetime import UTC, datetime

from tubely.config import Settings, get_settings
from tubely.core.auth import create_access_token
from tubely.core.database import VIDEOS_COLLECTION, DatabaseClient
from tubely.models.video import Video
from tubely.services.video_store import VideoStore


DEFAULT_SEED_TITLE = "Boots demo"


def log(message: str, level: str = "INFO", verbose: bool = True) -> None:
    """Print a timestamped line; DEBUG lines only with --verbose."""
    if level == "DEBUG" and not verbose:
        return
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    print(f"[{timestamp}] [{level}] {message}")


async def initialize(settings: Settings, args: argparse.Namespace) -> int:
    client = DatabaseClient(settings)
    log(f"Connecting to MongoDB database {settings.mongodb_db_name}...")
    if not await client.connect():
        log("Failed to connect to MongoDB", "ERROR")
        return 1

    try:
        database = client.get_database()

        if args.drop:
            await database.drop_collection(VIDEOS_COLLECTION)
            log(f"Dropped collection {VIDEOS_COLLECTION}", "WARNING")

        await client.create_indexes()
        indexes = await client.get_videos_collection().index_information()
        log(f"Indexes on {VIDEOS_COLLECTION}: {', '.join(sorted(indexes))}", "DEBUG", args.verbose)

        if args.seed_user:
            store = VideoStore(client.get_videos_collection())
            video = await store.create_video(
                Video(
                    user_id=args.seed_user,
                    title=args.title,
                    description="Seeded by init_db.py",
                )
            )
            token = create_access_token(args.seed_user, settings)
            log(f"Seeded draft video {video.id} for user {args.seed_user}")
            print(f"\nVIDEO_ID={video.id}")
            print(f"TOKEN={token}\n")
    finally:
        await client.close()

    log("Database initialization complete")
    return 0


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Initialize the MongoDB database for Tubely",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/init_db.py                         # Create indexes
  python scripts/init_db.py --seed-user alice       # Also seed a draft video and print a token
  python scripts/init_db.py --drop                  # Drop the videos collection first (DESTRUCTIVE)

Upload a video with the printed values:
  curl -H "Authorization: Bearer $TOKEN" -F "video=@boots.mp4;type=video/mp4" \\
       http://localhost:8091/api/v1/video_upload/$VIDEO_ID
        """,
    )

    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop the videos collection before creating indexes (WARNING: destructive)",
    )

    parser.add_argument(
        "--seed-user",
        metavar="USER_ID",
        help="Create a draft video owned by USER_ID and print a bearer token for it",
    )

    parser.add_argument("--title", default=DEFAULT_SEED_TITLE, help="Title of the seeded video")

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Display detailed operation logs"
    )

    return parser.parse_args()


def main() -> int:
    """
    Main entry point for the database initialization script.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    args = parse_arguments()

    print("\n" + "=" * 60)
    print("Tubely - MongoDB Database Initialization")
    print("=" * 60 + "\n")

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.drop:
        confirmation = input(
            f"\nWARNING: This will DELETE ALL DATA in the {VIDEOS_COLLECTION} collection.\n"
            "Type 'yes' to confirm: "
        )
        if confirmation.lower() != "yes":
            print("Operation cancelled.")
            return 0

    try:
        return asyncio.run(initialize(get_settings(), args))
    except KeyboardInterrupt:
        print("\n\nInitialization interrupted by user.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
