"""Allow `python -m tgrelay`."""

from tgrelay.cli.app import app

app()
