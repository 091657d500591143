"""Module entrypoint so `python -m upr` works."""

from upr.cli import app

if __name__ == "__main__":
    app()
