"""Allow running as ``python -m routeros_blocker``."""

from .cli import main

main()
