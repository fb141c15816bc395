"""Service layer: search orchestration and anchor resolution."""

from easylink.service_layer.anchor_resolver import AnchorResolver
from easylink.service_layer.search_service import SimilaritySearchService, format_wikilink


__all__ = ["AnchorResolver", "SimilaritySearchService", "format_wikilink"]
