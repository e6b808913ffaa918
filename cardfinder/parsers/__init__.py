from cardfinder.parsers.search_api import (
    CardRecord,
    PrintingRecord,
    SetRecord,
    parse_ids_response,
    parse_result_item,
    parse_term_response,
)

__all__ = [
    "CardRecord",
    "PrintingRecord",
    "SetRecord",
    "parse_ids_response",
    "parse_result_item",
    "parse_term_response",
]
