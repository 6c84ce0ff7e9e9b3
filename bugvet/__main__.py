"""Allow running bugvet with ``python -m bugvet``."""

from .cli import main

if __name__ == "__main__":
    main()
