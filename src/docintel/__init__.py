"""Extraction and retrieval core for business documents.

Text normalization, sentence and section splitting, sentence-preserving
chunking, knowledge/requirement extraction, document classification and
category-filtered relevance ranking. The embedding model and the fragment
store are pluggable, so TF-IDF and the in-memory store can be swapped for a
sentence-transformers model or an external store without changing the
pipeline.
"""

__version__ = "0.1.0"
