"""Allows running the CLI with `python -m pexcli`."""

from pexcli.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
