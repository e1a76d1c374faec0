"""Entry point for ``python -m gasketcheck``."""

from gasketcheck.cli import cli

if __name__ == "__main__":
    cli(prog_name="gasketcheck")
