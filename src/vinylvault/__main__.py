"""Main entry point for running Vinyl Vault with ``python -m vinylvault``."""

import sys

from vinylvault.cli.main import cli

if __name__ == "__main__":
    sys.exit(cli())
