"""
Regulator record fetchers.
"""

from app.scraping.fetchers.base import HTTPFetcher, RecordFetcher
from app.scraping.fetchers.ea import EANoticeFetcher, EARegisterFetcher
from app.scraping.fetchers.factory import HTTPRecordFetcherFactory, RecordFetcherFactory
from app.scraping.fetchers.hse import HSECaseFetcher, HSENoticeFetcher

__all__ = [
    "EANoticeFetcher",
    "EARegisterFetcher",
    "HSECaseFetcher",
    "HSENoticeFetcher",
    "HTTPFetcher",
    "HTTPRecordFetcherFactory",
    "RecordFetcher",
    "RecordFetcherFactory",
]
