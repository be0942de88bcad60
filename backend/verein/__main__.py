"""Allows `python -m verein` to start the server."""

from verein.main import run

if __name__ == "__main__":
    run()
