#!/usr/bin/env python3
"""
Data Loading Module

Downloads the JHU CSSE time-series tables and the population lookup table.
Every failure (network, HTTP status, empty body, unparsable CSV) is raised as
a FetchError straight away; nothing is retried.
"""

import io
from typing import Dict, Optional

import pandas as pd
import requests
from tqdm import tqdm

from analysis.errors import FetchError
from config import SourceConfig


class RawLoader:
    """Fetches the raw CSV resources into DataFrames"""

    def __init__(self, sources: Optional[SourceConfig] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize the loader

        Args:
            sources: Source locations and HTTP timeout
            session: Optional session to use instead of a fresh one. A
                provided session is not closed by the loader.
        """
        self.sources = sources or SourceConfig()
        self._session = session

    def fetch_table(self, name: str, session: requests.Session) -> pd.DataFrame:
        """
        Download one resource and parse it as CSV.

        Args:
            name: Resource name, e.g. 'us_cases' or 'lookup'
            session: Session used for the request

        Returns:
            Raw table with the source's column names untouched

        Raises:
            FetchError: If the download or parse fails
        """
        url = self.sources.url_for(name)
        try:
            with session.get(url, timeout=self.sources.timeout_seconds) as response:
                response.raise_for_status()
                text = response.text
        except requests.RequestException as exc:
            raise FetchError(name, url, str(exc)) from exc

        if not text.strip():
            raise FetchError(name, url, "empty response body")

        try:
            table = pd.read_csv(io.StringIO(text))
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            raise FetchError(name, url, f"malformed CSV ({exc})") from exc

        # pandas turns surplus leading fields into an index instead of failing
        if not isinstance(table.index, pd.RangeIndex):
            raise FetchError(name, url, "malformed CSV (rows are wider than the header)")
        return table

    def fetch_all(self) -> Dict[str, pd.DataFrame]:
        """
        Download every configured resource.

        Returns:
            Dictionary of raw tables keyed by resource name
        """
        if self._session is not None:
            return self._fetch_with(self._session)
        with requests.Session() as session:
            return self._fetch_with(session)

    def _fetch_with(self, session: requests.Session) -> Dict[str, pd.DataFrame]:
        tables = {}
        for name in tqdm(self.sources.resource_names, desc="Downloading tables"):
            tables[name] = self.fetch_table(name, session)
        return tables
