from .view import ListingPage, ListingRow, ListingStatus, build_listing

__all__ = ["ListingPage", "ListingRow", "ListingStatus", "build_listing"]
