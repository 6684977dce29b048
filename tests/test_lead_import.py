import uuid

import pytest

from realty_crm.core.exceptions import ValidationError
from realty_crm.services.lead_import import (
    NO_VALID_ROWS_MESSAGE, build_import_records, iter_import_records, normalize_source, parse_rows
)

IMPORTER = uuid.uuid4()


def test_marketer_import_with_header_synonyms():
    text = "Name,Mobile,Source\nA,1,Website\nB,2,Facebook Ads\n"

    records = build_import_records(text, IMPORTER, "digital_marketer")

    assert len(records) == 2
    first, second = records
    assert first["name"] == "A"
    assert first["phone"] == "1"
    assert first["source"] == "website"
    assert first["email"] == "lead1@placeholder.com"
    assert first["stage"] == "MQL"
    assert first["assigned_to"] is None
    assert first["created_by"] == IMPORTER
    assert first["status"] == "new"
    assert second["source"] == "other"
    assert second["email"] == "lead2@placeholder.com"


def test_salesman_import_is_self_assigned_sgl():
    records = build_import_records("customer name,customer mobile\nA,1\n", IMPORTER, "salesman")

    assert records[0]["assigned_to"] == IMPORTER
    assert records[0]["stage"] == "SGL"


def test_rows_missing_name_or_phone_are_skipped():
    text = "name,phone,email\nA,,a@x.com\n,2,b@x.com\nC,3,c@x.com\n"

    records = build_import_records(text, IMPORTER, "admin")

    assert [record["name"] for record in records] == ["C"]
    assert records[0]["email"] == "c@x.com"


def test_no_valid_rows_raises():
    with pytest.raises(ValidationError) as exc_info:
        build_import_records("name,email\nA,a@x.com\n", IMPORTER, "admin")
    assert exc_info.value.message == NO_VALID_ROWS_MESSAGE


def test_header_only_raises():
    with pytest.raises(ValidationError):
        build_import_records("name,phone\n\n", IMPORTER, "admin")


def test_blank_lines_are_ignored_for_row_numbering():
    text = "name,phone\n\nA,1\n\n\nB,2\n"
    records = build_import_records(text, IMPORTER, "admin")
    assert [record["email"] for record in records] == [
        "lead1@placeholder.com",
        "lead2@placeholder.com",
    ]


def test_unknown_columns_ignored_and_synonyms_mapped():
    rows = list(parse_rows("Customer Name, Project Name ,Remarks,Area,Budget\nA,Lake View,call later,Gulshan,100\n"))
    assert rows == [{
        "_row": 1,
        "name": "A",
        "project_name": "Lake View",
        "notes": "call later",
        "location": "Gulshan",
    }]


def test_quoted_commas_are_not_supported():
    rows = list(parse_rows('name,phone,notes\n"Doe, John",1,x\n'))
    assert rows[0]["name"] == '"Doe'
    assert rows[0]["phone"] == 'John"'


def test_records_are_produced_lazily():
    records = iter_import_records("name,phone\nA,1\nB,2\n", IMPORTER, "admin")
    assert next(records)["name"] == "A"
    assert next(records)["name"] == "B"


def test_normalize_source():
    assert normalize_source("Social Media") == "social_media"
    assert normalize_source(" WALK IN ") == "walk_in"
    assert normalize_source("billboard") == "other"
    assert normalize_source(None) == "other"


TWO_ROW_EXPORT = (
    "name,phone,email,project,source\n"
    "John Doe,01712345678,john@x.com,Project A,website\n"
    "Jane Smith,01812345678,jane@x.com,Project B,referral"
)


@pytest.mark.parametrize("index,name,phone,email,project,source", [
    (0, "John Doe", "01712345678", "john@x.com", "Project A", "website"),
    (1, "Jane Smith", "01812345678", "jane@x.com", "Project B", "referral"),
])
def test_admin_import_of_two_row_export(index, name, phone, email, project, source):
    records = build_import_records(TWO_ROW_EXPORT, IMPORTER, "admin")

    assert len(records) == 2
    record = records[index]
    assert record["name"] == name
    assert record["phone"] == phone
    assert record["email"] == email
    assert record["project_name"] == project
    assert record["source"] == source
    assert record["stage"] == "MQL"
    assert record["assigned_to"] is None
