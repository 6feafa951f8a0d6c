"""
In-memory search over document dictionaries.

A query is split into whitespace-separated terms. A document matches when
every term is found (case-insensitive substring) in at least one of the
searched fields. Matches are ranked by a per-field relevance weight.
"""
from typing import List, Dict, Any, Tuple, Optional

from fastapi import HTTPException

MIN_QUERY_LENGTH = 2

PRODUCT_SEARCH_FIELDS = [
    ("name", 10),
    ("sku", 8),
    ("barcode", 8),
    ("category.name", 3),
    ("supplier.name", 2),
    ("description", 1),
]


def get_field(document: Dict[str, Any], field_path: str) -> Optional[str]:
    """Resolve a dotted field path like "category.name" to a lowercase string."""
    value: Any = document
    for part in field_path.split('.'):
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            return None

    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value).lower()


def tokenize(query: str) -> List[str]:
    """Lowercase a query and split it into terms."""
    return (query or "").lower().split()


def score_document(document: Dict[str, Any], query: str, fields: List[Tuple[str, int]]) -> float:
    """
    Relevance of one document for a query, 0 when any term is unmatched.

    Args:
        document: Document dictionary to score
        query: Raw search query
        fields: List of (field_path, weight) tuples

    Returns:
        Relevance score (higher is better)
    """
    terms = tokenize(query)
    if not terms:
        return 0

    values = [(get_field(document, path), weight) for path, weight in fields]
    values = [(value, weight) for value, weight in values if value]
    if not values:
        return 0

    full_query = " ".join(terms)
    relevance_score = 0.0

    for term in terms:
        term_score = 0.0
        for field_value, weight in values:
            if term in field_value:
                term_score += weight
        if term_score == 0:
            return 0
        relevance_score += term_score

    # Bonus for the whole query matching a field
    for field_value, weight in values:
        if field_value == full_query:
            relevance_score += weight * 1.5
        elif field_value.startswith(full_query):
            relevance_score += weight * 1.2

    return relevance_score


def search_documents(
    documents: List[Dict[str, Any]],
    query: str,
    fields: List[Tuple[str, int]] = None
) -> List[Dict[str, Any]]:
    """
    Filter and rank documents against a query.

    Args:
        documents: List of document dictionaries to search through
        query: Search query string
        fields: List of (field_path, relevance_score) tuples to search in.
                Defaults to the product search fields.

    Returns:
        Matching documents sorted by relevance (highest first). Documents with
        equal relevance keep their input order. An empty query returns the
        input unchanged.
    """
    if fields is None:
        fields = PRODUCT_SEARCH_FIELDS

    if not tokenize(query):
        return list(documents)

    scored = []
    for document in documents:
        if not document:
            continue
        relevance_score = score_document(document, query, fields)
        if relevance_score > 0:
            scored.append((document, relevance_score))

    scored.sort(key=lambda item: item[1], reverse=True)
    return [document for document, _ in scored]


def validate_search_query(query: Optional[str]) -> str:
    """
    Check the query of a dedicated search endpoint.

    Raises:
        HTTPException: If the query is shorter than MIN_QUERY_LENGTH characters
    """
    query = (query or "").strip()
    if len(query) < MIN_QUERY_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Search term must be at least {MIN_QUERY_LENGTH} characters long"
        )
    return query
