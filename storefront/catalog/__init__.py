"""
Catalog filter/search/sort engine and recommendation presets.
"""
from storefront.catalog.engine import filter_and_sort, matches_query
from storefront.catalog import presets

__all__ = [
    'filter_and_sort',
    'matches_query',
    'presets'
]
