import io

import pytest

from portal.errors import ValidationError
from portal.utils.csv_reader import FACULTY_COLUMNS, SALARY_COLUMNS, read_rows, stored_upload


def _rows(text, schema=SALARY_COLUMNS):
    data = text.encode("utf-8") if isinstance(text, str) else text
    return list(read_rows(io.BytesIO(data), schema))


def test_rows_are_keyed_by_schema_and_missing_columns_read_empty():
    rows = _rows("username,basic,pf,tax\nF001, 50000 ,1800,200\n")

    assert len(rows) == 1
    assert rows[0].ok
    assert rows[0].line_number == 2
    assert rows[0].values["username"] == "F001"
    assert rows[0].values["basic"] == "50000"
    assert rows[0].values["hra"] == ""
    assert set(rows[0].values) == set(SALARY_COLUMNS)


def test_blank_lines_and_bom_are_ignored():
    rows = _rows("\ufeffusername,basic,pf,tax\r\n\r\nF001,1,1,1\r\n\nF002,2,2,2\r\n")

    assert [r.values["username"] for r in rows] == ["F001", "F002"]
    assert [r.line_number for r in rows] == [3, 5]


def test_bad_line_is_reported_and_later_lines_still_read():
    rows = _rows('username,basic,pf,tax\nF001,1,1\nF002,"unterminated,1,1\nF003,3,3,3\n')

    assert not rows[0].ok
    assert "expected 4 columns" in rows[0].error
    assert not rows[1].ok
    assert rows[2].ok
    assert rows[2].values["username"] == "F003"


def test_invalid_utf8_line_is_an_error_row():
    data = b"username,basic,pf,tax\nF\xff01,1,1,1\nF002,2,2,2\n"
    rows = _rows(data)

    assert not rows[0].ok
    assert "encoding" in rows[0].error
    assert rows[1].ok


def test_quoted_commas_stay_in_one_field():
    rows = _rows('name,username,password,department,designation,baseSalary\n"Rao, K",F9,pw,CSE,HOD,1000\n',
                 FACULTY_COLUMNS)

    assert rows[0].values["name"] == "Rao, K"


def test_empty_file_raises():
    with pytest.raises(ValidationError):
        _rows("")


class FakeUpload:
    def __init__(self, data, filename="faculty.csv"):
        self.file = io.BytesIO(data)
        self.filename = filename


def test_stored_upload_removes_temp_file(tmp_path):
    upload = FakeUpload(b"a,b\n1,2\n")

    with stored_upload(upload, tmp_path / "uploads") as path:
        assert path.read_bytes() == b"a,b\n1,2\n"
        saved = path

    assert not saved.exists()
    assert upload.file.closed


def test_stored_upload_removes_temp_file_on_error(tmp_path):
    upload = FakeUpload(b"x")

    with pytest.raises(RuntimeError):
        with stored_upload(upload, tmp_path) as path:
            saved = path
            raise RuntimeError("boom")

    assert not saved.exists()
