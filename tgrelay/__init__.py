"""tgrelay - relay Telegram bot messages to a polling agent over local HTTP."""

__version__ = "0.1.0"
