"""Story Engine dev launcher. Starts the API server in watch mode."""

import argparse
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))


def main():
    parser = argparse.ArgumentParser(description="Story Engine dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--no-reload", action="store_true",
                        help="Disable auto-reload on code changes")
    args = parser.parse_args()

    # The app factory reads DATA_DIR, so the reloader child sees the same dir
    if args.data_dir:
        os.environ["DATA_DIR"] = str(args.data_dir.resolve())

    from story_engine.config import load_settings, setup_logging
    setup_logging(load_settings().log_level)

    print(f"Starting Story Engine API on http://localhost:{PORT} ...")
    uvicorn.run(
        "story_engine.app:create_app",
        factory=True,
        host=HOST,
        port=PORT,
        reload=not args.no_reload,
    )


if __name__ == "__main__":
    main()
