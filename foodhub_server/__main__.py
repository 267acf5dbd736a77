"""Allow running as ``python -m foodhub_server``."""

from .cli import main

if __name__ == "__main__":
    main()
