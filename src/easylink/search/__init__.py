"""
Content similarity search package.

This package provides the pure-Python scoring stack:
- analyzers: whitespace tokenizer, lowercase and stopword filters
- query: query preparation and precondition checks
- extractor: heading/block content units from structural metadata
- scoring: query-relative overlap score
- ranking: sort, deduplicate, threshold and truncate
"""
