"""Main entry point for the welfare fund CLI application."""

from welfare_fund.cli import create_cli

cli = create_cli()


def main() -> None:
    """CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
