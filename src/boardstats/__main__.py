"""
boardstats CLI Entry Point

Allows running the package as a module: python -m boardstats
"""


def main():
    """Main entry point for the CLI."""
    from boardstats.cli import app

    app()


if __name__ == "__main__":
    main()
