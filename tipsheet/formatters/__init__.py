"""Platform-specific recommendation formatters."""

from tipsheet.formatters.twitter import TwitterFormatter, truncate_text

__all__ = ["TwitterFormatter", "truncate_text"]
