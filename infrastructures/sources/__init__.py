# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: Upstream data-source adapters.

from infrastructures.sources.civic_sources import SOURCE_ATTRIBUTIONS, CivicSources, SourceFetch
from infrastructures.sources.errors import SourceError
from infrastructures.sources.http_client import SourceHttpClient

__all__ = [
    "CivicSources",
    "SourceFetch",
    "SOURCE_ATTRIBUTIONS",
    "SourceError",
    "SourceHttpClient",
]
