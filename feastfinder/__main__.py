"""Main entry point when executing feastfinder as a package.

This allows running the package using python -m feastfinder.
"""

from feastfinder.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
