# tests/test_validators.py
import io

import pytest
from openpyxl import Workbook

from cstore.branch_performance.exceptions import UploadValidationError
from cstore.branch_performance.validators import UploadValidator

HEADER = "Date,Branch,Channel,Sales Value,Orders Count,Target Value\n"


def _csv(body: str, header: str = HEADER) -> io.BytesIO:
    buffer = io.BytesIO((header + body).encode('utf-8'))
    buffer.name = 'sales.csv'
    return buffer


def test_valid_csv_is_normalized():
    records, issues = UploadValidator().validate_file(_csv(
        "2024-03-01,Maadi,Talabat,\"1,250\",12,1000\n"
        "2024-03-02 00:00:00, maadi ,WEBSITE,300,,\n"
    ))

    assert issues == []
    assert records['date'].tolist() == ['2024-03-01', '2024-03-02']
    assert records['branch_name'].tolist() == ['Maadi', 'Maadi']
    assert records['channel_name'].tolist() == ['Talabat', 'Website']
    assert records['sales_value'].tolist() == [1250.0, 300.0]
    assert records['orders_count'].tolist() == [12, 0]
    assert records['target_value'].tolist() == [1000.0, 0.0]


def test_header_aliases():
    records, _ = UploadValidator().validate_file(_csv(
        "2024-03-01,Zamalek,Breadfast,10\n",
        header="date,branch_name,channel_name,sales\n",
    ))
    assert records['orders_count'].tolist() == [0]
    assert records['target_value'].tolist() == [0]


def test_bad_rows_are_dropped_and_reported():
    records, issues = UploadValidator().validate_file(_csv(
        "2024-03-01,Maadi,Talabat,100,1,0\n"
        "someday,Maadi,Talabat,100,1,0\n"
        "2024-03-01,Heliopolis,Talabat,100,1,0\n"
        "2024-03-01,Maadi,Pigeon,100,1,0\n"
        "2024-03-01,Maadi,Talabat,-5,1,0\n"
        "2024-03-01,Maadi,Talabat,ten,1,0\n"
    ))

    assert len(records) == 1
    assert issues == [
        "Row 3: invalid date",
        "Row 4: unknown branch",
        "Row 5: unknown channel",
        "Row 6: invalid or negative number",
        "Row 7: invalid or negative number",
    ]


def test_missing_required_column():
    with pytest.raises(UploadValidationError) as excinfo:
        UploadValidator().validate_file(_csv("2024-03-01,Maadi,Talabat\n", header="Date,Branch,Channel\n"))
    assert 'Sales Value' in str(excinfo.value)


def test_no_valid_rows():
    with pytest.raises(UploadValidationError) as excinfo:
        UploadValidator().validate_file(_csv("bad,Maadi,Talabat,1,1,1\n"))
    assert excinfo.value.issues == ["Row 2: invalid date"]


def test_empty_file():
    with pytest.raises(UploadValidationError):
        UploadValidator().validate_file(_csv(""))


def test_unreadable_file():
    with pytest.raises(UploadValidationError):
        UploadValidator().read_file(b"not a workbook", filename='sales.xlsx')


def test_excel_upload():
    wb = Workbook()
    ws = wb.active
    ws.append(['Date', 'Branch', 'Channel', 'Sales Value', 'Orders Count', 'Target Value'])
    ws.append(['2024-03-01', 'New Cairo', 'Call Center', 500, 5, 400])
    output = io.BytesIO()
    wb.save(output)

    records, issues = UploadValidator().validate_file(output.getvalue(), filename='march.xlsx')

    assert issues == []
    assert records.iloc[0]['branch_name'] == 'New Cairo'
    assert records.iloc[0]['sales_value'] == 500.0
    assert records.iloc[0]['orders_count'] == 5
