"""Entry point for the PowerShell Function Annotator.

Delegates to the Click command group, which loads configuration and
sets up logging before running a command.
"""

from ps_annotator.cli.commands import annotate


def main() -> None:
    """Launch the CLI."""
    annotate(prog_name="ps-annotate")


if __name__ == "__main__":
    main()
