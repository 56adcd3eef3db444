"""Entry point for `python -m carecms` and `carecms` CLI."""

from carecms.cli.app import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
