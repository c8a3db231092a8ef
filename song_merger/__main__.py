"""Allow running the merge tool with ``python -m song_merger``."""

from .cli import main

if __name__ == "__main__":
    main()
