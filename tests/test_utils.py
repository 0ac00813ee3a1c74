from datetime import datetime

import pytest

from bhishak.utils.encryption_util import encryptor, mask_aadhaar, mask_phone
from bhishak.utils.error_handlers import ValidationError
from bhishak.utils.format_util import format_doctor_name, resolve_file_url
from bhishak.utils.pagination import MAX_PAGE, pagination_meta, parse_iso_datetime, parse_pagination
from bhishak.utils.settings_util import coerce_setting_value, normalize_setting_value
from bhishak.utils.validation_util import string_field


@pytest.mark.parametrize('name, expected', [
    ('Asha Rao', 'Dr. Asha Rao'),
    ('Dr. Asha Rao', 'Dr. Asha Rao'),
    ('dr asha rao', 'dr asha rao'),
    ('  Asha  ', 'Dr. Asha'),
    (None, ''),
])
def test_format_doctor_name(name, expected):
    assert format_doctor_name(name) == expected


def test_resolve_file_url(app):
    assert resolve_file_url('/uploads/a.png') == 'http://api.test/uploads/a.png'
    assert resolve_file_url('https://cdn.test/a.png') == 'https://cdn.test/a.png'
    assert resolve_file_url('') is None


def test_masking():
    assert mask_aadhaar('1234 5678 9012') == 'XXXX-XXXX-9012'
    assert mask_phone('+91 98765 43210') == 'XXXXXXXX3210'


def test_encryption_round_trip(app):
    token = encryptor.encrypt('asha@okbank')
    assert token != 'asha@okbank'
    assert encryptor.decrypt(token) == 'asha@okbank'
    assert encryptor.decrypt('garbage') is None


def test_pagination_meta():
    assert pagination_meta(1, 50, 0)['totalPages'] == 0
    assert pagination_meta(1, 50, 51)['totalPages'] == 2
    assert pagination_meta(2, 10, 100)['totalPages'] == 10


def test_parse_pagination():
    assert parse_pagination({}) == (1, 50)
    assert parse_pagination({'page': '3', 'limit': '1000'}) == (3, 100)
    with pytest.raises(ValidationError):
        parse_pagination({'page': '-1'})
    with pytest.raises(ValidationError):
        parse_pagination({'page': str(MAX_PAGE + 1)})
    assert parse_pagination({'page': str(MAX_PAGE)}) == (MAX_PAGE, 50)


def test_parse_iso_datetime_converts_to_naive_utc():
    parsed = parse_iso_datetime('2026-03-01T10:00:00+05:30', 'startDate')
    assert parsed == datetime(2026, 3, 1, 4, 30)
    assert parse_iso_datetime('2026-03-01', 'startDate') == datetime(2026, 3, 1)
    assert parse_iso_datetime(None, 'startDate') is None


def test_coerce_setting_value():
    assert coerce_setting_value('true', 'BOOLEAN') is True
    assert coerce_setting_value('TRUE', 'BOOLEAN') is False
    assert coerce_setting_value('2.5', 'NUMBER') == 2.5
    assert coerce_setting_value('{"a": 1}', 'JSON') == {'a': 1}
    assert coerce_setting_value('raw', 'COLOR') == 'raw'


def test_normalize_setting_value():
    assert normalize_setting_value(True, 'BOOLEAN') == 'true'
    assert normalize_setting_value('true', 'BOOLEAN') == 'true'
    assert normalize_setting_value(1, 'BOOLEAN') == 'false'
    assert normalize_setting_value(30, 'NUMBER') == '30'
    assert normalize_setting_value([1, 2], 'JSON') == '[1, 2]'
    assert normalize_setting_value('[1, 2]', 'JSON') == '[1, 2]'
    assert normalize_setting_value(5, 'STRING') == '5'

    assert normalize_setting_value(' -2.5e3 ', 'NUMBER') == '-2.5e3'

    invalid = ((True, 'NUMBER'), ('abc', 'NUMBER'), ('nan', 'NUMBER'), ('inf', 'NUMBER'), ('1_000', 'NUMBER'),
               (float('inf'), 'NUMBER'), (float('nan'), 'NUMBER'), (10 ** 400, 'NUMBER'), ([1], 'NUMBER'),
               ('{bad', 'JSON'), ('x', 'COLOR'))
    for value, setting_type in invalid:
        with pytest.raises(ValidationError):
            normalize_setting_value(value, setting_type)


def test_string_field():
    assert string_field({'name': '  Asha '}, 'name') == 'Asha'
    assert string_field({}, 'name') is None
    with pytest.raises(ValidationError):
        string_field({'name': 42}, 'name')
    with pytest.raises(ValidationError):
        string_field({'name': '   '}, 'name', 'Name is required')
