"""easylink: find similar passages across a vault of markdown notes and link to them."""

from easylink.config import SearchSettings, Settings
from easylink.service_layer import AnchorResolver, SimilaritySearchService, format_wikilink


__version__ = "0.1.0"

__all__ = ["AnchorResolver", "SearchSettings", "Settings", "SimilaritySearchService", "__version__", "format_wikilink"]
