"""Publishing recommendations to social platforms."""

from tipsheet.delivery.twitter import TwitterDelivery

__all__ = ["TwitterDelivery"]
