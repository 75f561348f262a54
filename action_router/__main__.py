import sys

from action_router.entry.cli import main

if __name__ == "__main__":
    sys.exit(main())
