"""合并原语：查询参数与请求头的多源合并。

Merge primitives for query parameters and headers.
"""

from hookfetch.merge.headers import (
    make_headers,
    merge_headers,
    to_header_record,
)
from hookfetch.merge.query import (
    from_multimap,
    from_string,
    make_query_string,
    make_url,
    merge_queries,
    to_multimap,
    to_query_record,
)
from hookfetch.merge.values import (
    UNSET,
    clone,
    is_plain_record,
    is_unset,
    merge_values,
)

__all__ = [
    "UNSET",
    "clone",
    "from_multimap",
    "from_string",
    "is_plain_record",
    "is_unset",
    "make_headers",
    "make_query_string",
    "make_url",
    "merge_headers",
    "merge_queries",
    "merge_values",
    "to_header_record",
    "to_multimap",
    "to_query_record",
]
