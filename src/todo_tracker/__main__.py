"""Allow running the tracker with ``python -m todo_tracker``."""

from .cli import main

main()
