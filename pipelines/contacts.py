"""Unified contact directory built from the owner, tenant and vendor feeds."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping

from feed_schema import MERGE_KEY_SEPARATOR
from pipelines.normalizer import clean_id, clean_string, format_date, is_empty, resolve_field
from storage import SourceResult


logger = logging.getLogger(__name__)


@dataclass
class ContactFeed:
    table_name: str
    type_label: str
    source: SourceResult
    refresh_time: Any = None


def build_display_name(row: Mapping[str, Any]) -> str:
    display = clean_string(resolve_field(row, "contact.full_name"))
    if display:
        return display

    first = clean_string(resolve_field(row, "contact.first_name"))
    last = clean_string(resolve_field(row, "contact.last_name"))
    combined = f"{first} {last}".strip()
    if combined:
        return combined

    return clean_string(resolve_field(row, "contact.company"))


def build_merge_key(contact_id: str, contact_type_id: str) -> str:
    return f"{contact_id}{MERGE_KEY_SEPARATOR}{contact_type_id}"


def build_contact_directory(feeds: Iterable[ContactFeed]) -> List[Dict[str, Any]]:
    """One directory row per source row; rows are never merged across feeds."""
    rows: List[Dict[str, Any]] = []
    for feed in feeds:
        if not feed.source.present:
            logger.warning("Contact feed %s not found; skipping.", feed.table_name)
            continue

        refresh_time = "" if is_empty(feed.refresh_time) else format_date(feed.refresh_time)
        for row in feed.source.rows:
            contact_id = clean_id(resolve_field(row, "contact.id"))
            contact_type_id = clean_id(resolve_field(row, "contact.type_id"))
            rows.append(
                {
                    "contact_merge_key": build_merge_key(contact_id, contact_type_id),
                    "contact_id": contact_id,
                    "contact_type_id": contact_type_id,
                    "contact_type_name": feed.type_label,
                    "display_name": build_display_name(row),
                    "email": clean_string(resolve_field(row, "contact.email")),
                    "phone": clean_string(resolve_field(row, "contact.phone")),
                    "source_sheet": feed.table_name,
                    "refresh_time": refresh_time,
                }
            )
        logger.debug("Read %s contacts from %s.", len(feed.source.rows), feed.table_name)

    logger.info("Built contact directory with %s rows.", len(rows))
    return rows
