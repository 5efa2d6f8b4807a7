"""Module entrypoint for the buckrefactor CLI."""

from __future__ import annotations

from cli.app import app


def main() -> None:
    """Run the buckrefactor CLI."""
    app.meta()


if __name__ == "__main__":
    main()
