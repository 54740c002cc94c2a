"""Adapters connecting the autolink core to urllib and Telegram."""
