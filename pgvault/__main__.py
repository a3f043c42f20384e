"""Allow ``python -m pgvault``."""

from pgvault.cli.app import main

main()
