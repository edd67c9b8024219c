import sys
import traceback
from pathlib import Path

# Load .env before reading MEETPOINT_API_URL
from dotenv import load_dotenv

env_path = Path(__file__).resolve().parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

from meetpoint.cli import main


if __name__ == "__main__":
    """
    Entry point for the MeetPoint terminal client.
    """
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\nInterrompido.")
        sys.exit(130)
    except Exception as e:
        print(f"\nFatal error: {e}", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        sys.exit(1)
