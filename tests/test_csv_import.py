import pytest

from app.utils.csv_import import CsvImportError, parse_csv_date, parse_transactions_csv


def test_valid_rows_survive_bad_ones():
    text = (
        "date,category,amount,merchant,type\n"
        "2026-03-01,Food,12.50,Cafe,debit\n"
        "2026-03-02,Income,2500,Employer,credit\n"
        "2026-03-03,Travel,40,Metro,\n"
        "2026-03-04,Food,abc,Bakery,debit\n"
    )
    result = parse_transactions_csv(text)
    assert len(result.rows) == 3
    assert result.errors == [{"row": 5, "error": "Invalid amount (must be positive number)"}]
    assert result.rows[2]["type"] == "debit"
    assert result.rows[0]["description"] == "Imported: Cafe"


def test_row_numbers_follow_file_lines():
    text = (
        "Date,Category,Amount,Merchant\n"
        "\n"
        "2026-03-01,Food,12.50\n"
        "2026-13-40,Food,5,Cafe\n"
        "2026-03-05,Food,-3,Cafe\n"
    )
    result = parse_transactions_csv(text)
    assert result.rows == []
    assert [e["row"] for e in result.errors] == [3, 4, 5]
    assert result.errors[0]["error"] == "Incomplete row data"
    assert result.errors[1]["error"] == "Invalid date format (use YYYY-MM-DD or MM/DD/YYYY)"


def test_extra_columns_do_not_break_parsing():
    text = "date,category,amount,merchant,type,description\n03/15/2026,Salary,5000,Acme,CREDIT,March pay\n"
    result = parse_transactions_csv(text)
    assert result.rows == [{
        "amount": 5000.0,
        "category": "Salary",
        "merchant": "Acme",
        "date": "2026-03-15",
        "type": "credit",
        "description": "March pay",
    }]


def test_bad_type_is_rejected():
    text = "date,category,amount,merchant,type\n2026-03-01,Food,5,Cafe,refund\n"
    result = parse_transactions_csv(text)
    assert result.errors == [{"row": 2, "error": 'Type must be either "debit" or "credit"'}]


def test_missing_required_field():
    text = "date,category,amount,merchant\n2026-03-01,,5,Cafe\n"
    result = parse_transactions_csv(text)
    assert result.errors == [{"row": 2, "error": "Missing required field"}]


def test_header_only_is_empty():
    with pytest.raises(CsvImportError) as exc_info:
        parse_transactions_csv("date,category,amount,merchant\n")
    assert exc_info.value.code == "EMPTY_CSV"


def test_missing_columns():
    with pytest.raises(CsvImportError) as exc_info:
        parse_transactions_csv("date,amount,merchant\n2026-03-01,5,Cafe\n")
    assert exc_info.value.code == "INVALID_CSV_FORMAT"
    assert "category" in exc_info.value.message
    assert "type (optional)" in exc_info.value.extra["requiredColumns"]


def test_parse_csv_date_formats():
    assert parse_csv_date("2026-03-15").isoformat() == "2026-03-15"
    assert parse_csv_date("03/15/2026").isoformat() == "2026-03-15"
    assert parse_csv_date("2026-03-15T10:30:00").isoformat() == "2026-03-15"
    with pytest.raises(ValueError):
        parse_csv_date("15/03/2026")
