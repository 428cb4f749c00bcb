"""Main entry point when executing fetchguard as a package.

This allows running the package using python -m fetchguard.
"""

from fetchguard.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
