"""Main entry point when executing mapscli as a package.

This allows running the package using python -m mapscli.
"""

from mapscli.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
