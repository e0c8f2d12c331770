"""Group Board: role-gated group announcements with platform approval."""

__version__ = "0.1.0"
