from typing import Dict, List, Tuple


TABLES = {
    "API_PORTFOLIOS": "API Portfolios",
    "API_PROPERTIES": "API Properties",
    "API_UNITS": "API Units",
    "API_LEASES": "API Leases",
    "API_OWNERS": "API Owners",
    "API_TENANTS": "API Tenants",
    "API_VENDORS": "API Vendors",
    "CONFIG": "CONFIG",
    "RUN_LOG": "RUN_LOG",
    "TRUTH_META": "TRUTH_META",
    "CONTACT_KEYS": "CONTACT_KEYS",
    "RENT_TRUTH": "RENT_TRUTH",
    "GAP_ANALYSIS": "GAP_ANALYSIS",
    "RC_AVM_SNAPSHOTS": "RC_AVM_SNAPSHOTS",
    "RC_PRICING_QUEUE": "RC_PRICING_QUEUE",
}

RAW_TABLES = [
    TABLES["API_PORTFOLIOS"],
    TABLES["API_PROPERTIES"],
    TABLES["API_UNITS"],
    TABLES["API_LEASES"],
    TABLES["API_OWNERS"],
    TABLES["API_TENANTS"],
    TABLES["API_VENDORS"],
]

CONTACT_SOURCES: List[Tuple[str, str]] = [
    (TABLES["API_OWNERS"], "Owner"),
    (TABLES["API_TENANTS"], "Tenant"),
    (TABLES["API_VENDORS"], "Vendor"),
]

REFRESH_TIME_COLUMN = "Refresh Time"
MERGE_KEY_SEPARATOR = "|"

# Most specific (vendor-prefixed) spelling first, legacy spellings last.
FIELD_ALIASES: Dict[str, List[str]] = {
    "unit.id": ["unit.unitID", "unitID", "unitId", "id"],
    "unit.property_id": ["unit.propertyID", "propertyID", "propertyId", "property_id"],
    "unit.name": ["unit.name", "name", "unitName", "unit_name"],
    "unit.rent": ["unit.rent", "rent", "marketRent", "market_rent"],
    "lease.id": ["lease.leaseID", "leaseID", "leaseId", "id"],
    "lease.unit_id": ["lease.unitID", "unitID", "unitId", "unit_id"],
    "lease.start": ["lease.startDate", "leaseStartDate", "startDate", "start_date"],
    "lease.end": ["lease.endDate", "leaseEndDate", "endDate", "end_date"],
    "lease.rent": ["unit.rent", "rent", "unitRent", "unit_rent"],
    "property.id": ["property.propertyID", "propertyID", "propertyId", "id"],
    "property.address": ["property.address", "address", "streetAddress", "street_address"],
    "property.city": ["property.city", "city"],
    "property.state": ["property.stateID", "state"],
    "property.zip": ["property.postalCode", "zip", "zipCode", "zip_code", "postalCode"],
    "contact.id": ["contact.contactID", "contactID", "contactId", "id"],
    "contact.type_id": ["contact.contactTypeID", "contactTypeID", "contactTypeId"],
    "contact.full_name": ["contact.name", "displayName", "display_name", "name"],
    "contact.first_name": ["contact.firstName", "firstName", "first_name"],
    "contact.last_name": ["contact.lastName", "lastName", "last_name"],
    "contact.company": ["contact.companyName", "companyName", "company_name"],
    "contact.email": ["contact.email", "email", "emailAddress"],
    "contact.phone": ["contact.phone", "phone", "phoneNumber", "mobilePhone"],
    "snapshot.unit_id": ["unit_id", "unitID", "unitId"],
    "snapshot.estimate": ["rent_estimate", "rentEstimate"],
    "snapshot.date": ["snapshot_date", "snapshotDate", "created_at"],
    "config.key": ["key", "Key", "KEY"],
    "config.value": ["value", "Value", "VALUE"],
}

TRUTH_META_COLUMNS = ["table_name", "last_refresh_time", "row_count", "last_checked_at"]

RUN_LOG_COLUMNS = ["timestamp", "script_name", "status", "message"]

CONTACT_COLUMNS = [
    "contact_merge_key",
    "contact_id",
    "contact_type_id",
    "contact_type_name",
    "display_name",
    "email",
    "phone",
    "source_sheet",
    "refresh_time",
]

RENT_TRUTH_COLUMNS = [
    "unit_id",
    "property_id",
    "unit_name",
    "current_rent",
    "rent_source",
    "lease_id",
    "lease_start",
    "lease_end",
    "unit_rent_fallback",
]

GAP_COLUMNS = [
    "unit_id",
    "property_id",
    "unit_name",
    "address",
    "city",
    "state",
    "zip",
    "current_rent",
    "rent_source",
    "lease_id",
    "lease_start",
    "lease_end",
    "market_rent_estimate",
    "avm_date",
    "rent_gap_dollar",
    "rent_gap_percent",
    "pricing_status",
]

SNAPSHOT_COLUMNS = [
    "unit_id",
    "property_id",
    "address",
    "rent_estimate",
    "rent_range_low",
    "rent_range_high",
    "snapshot_date",
    "raw_response",
]

PRICING_QUEUE_COLUMNS = [
    "unit_id",
    "property_id",
    "address",
    "city",
    "state",
    "zip",
    "reason",
    "lease_end",
    "last_avm_date",
]

RENT_SOURCE_LEASE = "lease"
RENT_SOURCE_UNIT = "unit"

PRICING_UNDERPRICED = "UNDERPRICED"
PRICING_OVERPRICED = "OVERPRICED"
PRICING_FAIR = "FAIR"
