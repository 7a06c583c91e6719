from datetime import date
from pathlib import Path

import pytest

from feed_schema import TABLES
from storage import ParquetTableStore


AS_OF = date(2024, 7, 1)


@pytest.fixture
def store(tmp_path: Path) -> ParquetTableStore:
    return ParquetTableStore(tmp_path / "tables")


@pytest.fixture
def populated_store(store: ParquetTableStore) -> ParquetTableStore:
    """Store holding a small portfolio with the column spellings of the vendor export."""
    refresh = "2024-07-01 06:00:00"
    store.replace(
        TABLES["API_PROPERTIES"],
        ["Refresh Time", "property.propertyID", "property.address", "property.city", "property.stateID", "property.postalCode"],
        [
            {
                "Refresh Time": refresh,
                "property.propertyID": "P1",
                "property.address": "12 Elm St",
                "property.city": "Springfield",
                "property.stateID": "IL",
                "property.postalCode": "62701",
            },
            {
                "Refresh Time": refresh,
                "property.propertyID": "P2",
                "property.address": "400 Oak Ave",
                "property.city": "Shelbyville",
                "property.stateID": "IL",
                "property.postalCode": "62565",
            },
        ],
    )
    store.replace(
        TABLES["API_UNITS"],
        ["Refresh Time", "unit.unitID", "unit.propertyID", "unit.name", "unit.rent"],
        [
            {"Refresh Time": refresh, "unit.unitID": "U1", "unit.propertyID": "P1", "unit.name": "1A", "unit.rent": "950"},
            {"Refresh Time": refresh, "unit.unitID": "U2", "unit.propertyID": "P1", "unit.name": "1B", "unit.rent": "1100"},
            {"Refresh Time": refresh, "unit.unitID": "U3", "unit.propertyID": "P2", "unit.name": "2A", "unit.rent": "1000"},
            {"Refresh Time": refresh, "unit.unitID": "", "unit.propertyID": "P2", "unit.name": "??", "unit.rent": ""},
        ],
    )
    store.replace(
        TABLES["API_LEASES"],
        ["Refresh Time", "lease.leaseID", "lease.unitID", "lease.startDate", "lease.endDate", "unit.rent"],
        [
            {
                "Refresh Time": refresh,
                "lease.leaseID": "L1",
                "lease.unitID": "U1",
                "lease.startDate": "2023-01-01",
                "lease.endDate": "2023-12-31",
                "unit.rent": "900",
            },
            {
                "Refresh Time": refresh,
                "lease.leaseID": "L2",
                "lease.unitID": "U1",
                "lease.startDate": "2024-01-01",
                "lease.endDate": "",
                "unit.rent": "1000",
            },
            {
                "Refresh Time": refresh,
                "lease.leaseID": "L3",
                "lease.unitID": "U2",
                "lease.startDate": "8/1/2024",
                "lease.endDate": "7/31/2025",
                "unit.rent": "1150",
            },
        ],
    )
    store.replace(
        TABLES["API_OWNERS"],
        ["Refresh Time", "contact.contactID", "contact.contactTypeID", "contact.name", "contact.email"],
        [
            {
                "Refresh Time": refresh,
                "contact.contactID": "5",
                "contact.contactTypeID": "1",
                "contact.name": "Pat Owner",
                "contact.email": "pat@example.com",
            }
        ],
    )
    store.replace(
        TABLES["API_TENANTS"],
        ["Refresh Time", "contactID", "contactTypeID", "firstName", "lastName", "phone"],
        [
            {
                "Refresh Time": refresh,
                "contactID": "5",
                "contactTypeID": "2",
                "firstName": "Pat",
                "lastName": "Owner",
                "phone": "555-0100",
            }
        ],
    )
    store.append(
        TABLES["RC_AVM_SNAPSHOTS"],
        [
            {"unit_id": "U1", "rent_estimate": "1100", "snapshot_date": "2024-05-01"},
            {"unit_id": "U1", "rent_estimate": "1200", "snapshot_date": "2024-06-01"},
            {"unit_id": "U3", "rent_estimate": "950", "snapshot_date": "2024-06-15"},
        ],
    )
    return store
