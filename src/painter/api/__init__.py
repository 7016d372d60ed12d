"""HTTP surface -- archive reads and the cron trigger."""

from painter.api.app import create_app

__all__ = ["create_app"]
