from datetime import date

from pagescout.outputs.csv_output import export_filename, save_csv, to_csv


def test_empty_input_yields_empty_string():
    assert to_csv([]) == ''


def test_header_is_ordered_union_of_keys():
    records = [{'name': 'A', 'price': '1'}, {'rating': '5', 'name': 'B'}]

    lines = to_csv(records).split('\n')

    assert lines[0] == '"name","price","rating"'
    assert lines[1] == '"A","1",""'
    assert lines[2] == '"B","","5"'


def test_quotes_are_doubled():
    csv_text = to_csv([{'name': 'Zen Book "Pro"'}])

    assert csv_text == '"name"\n"Zen Book ""Pro"""'


def test_commas_and_newlines_stay_inside_quotes():
    csv_text = to_csv([{'price': '$1,299.00', 'note': 'line one\nline two'}])

    assert csv_text == '"price","note"\n"$1,299.00","line one\nline two"'


def test_no_trailing_newline():
    assert not to_csv([{'a': '1'}]).endswith('\n')


def test_export_filename():
    assert export_filename(date(2024, 3, 9)) == 'scraped-data-2024-03-09.csv'
    assert export_filename().startswith('scraped-data-')


def test_save_csv_creates_directories(tmp_path):
    path = tmp_path / 'exports' / 'out.csv'

    save_csv(str(path), [{'name': 'A'}])

    assert path.read_text(encoding='utf-8') == '"name"\n"A"'
