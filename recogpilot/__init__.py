"""LiDAR obstacle following, lane tracking, and delivery-sign and traffic-light logic for a small autonomous vehicle."""

__version__ = "0.1.0"