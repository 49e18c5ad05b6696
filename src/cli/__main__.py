"""Allow ``python -m src.cli`` execution."""

from src.cli.resolve import main

main()
