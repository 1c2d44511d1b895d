"""
API tests for /api/measurement-units
"""
import pytest

from measureworks.seeders.unit_seeder import SYSTEM_UNITS, TEMPERATURE_UNITS

BASE = '/api/measurement-units'


def _grain_payload(**overrides):
    payload = {
        'name': 'grain',
        'symbol': 'gr',
        'unit_type': 'WEIGHT',
        'base_unit_ref': 'gram',
        'conversion_factors': [{'target_unit': 'gram', 'factor': 0.06479891}],
        'decimal_places': 3,
        'precision': 0.001,
    }
    payload.update(overrides)
    return payload


class TestListAndGet:

    def test_list_active_units(self, client):
        response = client.get(BASE)
        body = response.get_json()

        assert response.status_code == 200
        assert body['success'] is True
        assert len(body['data']['units']) == len(SYSTEM_UNITS) + len(TEMPERATURE_UNITS)

    def test_list_by_type(self, client):
        response = client.get(f'{BASE}?unit_type=temperature')
        units = response.get_json()['data']['units']
        assert [u['id'] for u in units] == ['celsius', 'fahrenheit', 'kelvin']

    def test_list_summary(self, client):
        client.post(f'{BASE}/convert', json={'from_unit_id': 'gram', 'to_unit_id': 'kilogram', 'value': 1})
        client.delete(f'{BASE}/gallon')
        summary = client.get(f'{BASE}?unit_type=WEIGHT').get_json()['data']['summary']
        catalog = len(SYSTEM_UNITS) + len(TEMPERATURE_UNITS)

        assert summary == {
            'total_units': catalog,
            'active_units': catalog - 1,
            'total_usage': 2,
            'unit_types': 7,
        }

    def test_list_includes_inactive_on_request(self, client):
        client.delete(f'{BASE}/gallon')
        active = client.get(f'{BASE}?unit_type=VOLUME').get_json()['data']['units']
        everything = client.get(f'{BASE}?unit_type=VOLUME&include_inactive=true').get_json()['data']['units']

        assert 'gallon' not in [u['id'] for u in active]
        assert 'gallon' in [u['id'] for u in everything]

    def test_list_unknown_type(self, client):
        assert client.get(f'{BASE}?unit_type=speed').status_code == 400

    def test_get_unit(self, client):
        body = client.get(f'{BASE}/kilogram').get_json()
        unit = body['data']

        assert unit['symbol'] == 'kg'
        assert unit['is_system_unit'] is True
        assert unit['conversion_factors'] == [{'target_unit': 'gram', 'factor': 1000.0, 'offset': 0.0}]

    def test_get_missing_unit(self, client):
        response = client.get(f'{BASE}/stone')
        body = response.get_json()

        assert response.status_code == 404
        assert body['success'] is False
        assert body['errors']['error_code'] == 'UNIT_NOT_FOUND'
        assert body['errors']['error_data']['unit_id'] == 'stone'


class TestCreate:

    def test_create_unit(self, client):
        response = client.post(BASE, json=_grain_payload(is_system_unit=True))
        unit = response.get_json()['data']

        assert response.status_code == 201
        assert len(unit['id']) == 32
        assert unit['is_system_unit'] is False
        assert unit['display_name'] == 'grain'
        assert client.get(f"{BASE}/{unit['id']}").status_code == 200

    def test_create_with_explicit_id(self, client):
        response = client.post(BASE, json=_grain_payload(id='grain'))
        assert response.status_code == 201
        assert response.get_json()['data']['id'] == 'grain'

    def test_create_from_form_fields(self, client):
        response = client.post(BASE, data={
            'name': 'stone', 'symbol': 'st', 'unit_type': 'WEIGHT',
            'is_base_unit': 'false', 'base_unit_ref': 'gram',
        })
        unit = response.get_json()['data']

        assert response.status_code == 201
        assert unit['is_base_unit'] is False
        assert unit['base_unit_ref'] == 'gram'

    def test_create_with_unreadable_boolean(self, client):
        response = client.post(BASE, data={
            'name': 'stone', 'symbol': 'st', 'unit_type': 'WEIGHT', 'is_base_unit': 'maybe',
        })
        assert response.status_code == 400

    def test_missing_fields(self, client):
        response = client.post(BASE, json={'name': 'grain'})
        assert response.status_code == 400
        assert 'symbol' in response.get_json()['message']

    def test_malformed_payload(self, client):
        response = client.post(BASE, json=_grain_payload(unit_type='SPEED'))
        assert response.status_code == 400

    @pytest.mark.parametrize("overrides, status, code", [
        ({'symbol': 'g'}, 409, 'DUPLICATE_UNIT'),
        ({'is_base_unit': True}, 409, 'INVALID_BASE_UNIT'),
        ({'conversion_factors': [{'target_unit': 'liter', 'factor': 1}]}, 422, 'INVALID_CONVERSION_FACTOR'),
        ({'precision': 0}, 422, 'INVALID_UNIT_DEFINITION'),
    ])
    def test_rejected_definitions(self, client, overrides, status, code):
        response = client.post(BASE, json=_grain_payload(**overrides))
        assert response.status_code == status
        assert response.get_json()['errors']['error_code'] == code


class TestUpdateAndDelete:

    def test_patch_unit(self, client):
        response = client.patch(f'{BASE}/kilogram', json={'display_name': 'Kilograms', 'sort_order': 1})
        assert response.status_code == 200
        assert response.get_json()['data']['display_name'] == 'Kilograms'

    def test_patch_boolean_string(self, client):
        response = client.patch(f'{BASE}/gram', json={'allow_negative': 'false'})
        assert response.get_json()['data']['allow_negative'] is False

        converted = client.post(f'{BASE}/convert', json={'from_unit_id': 'gram', 'to_unit_id': 'kilogram', 'value': -5})
        assert converted.status_code == 422
        assert converted.get_json()['errors']['error_code'] == 'OUT_OF_RANGE'

    def test_patch_unreadable_boolean(self, client):
        response = client.patch(f'{BASE}/gram', json={'allow_negative': 'perhaps'})
        assert response.status_code == 422
        assert response.get_json()['errors']['error_code'] == 'INVALID_UNIT_DEFINITION'

    def test_patch_partial_display_format(self, client):
        response = client.patch(f'{BASE}/kilogram', json={'display_format': {'symbol_position': 'before'}})
        display = response.get_json()['data']['display_format']

        assert display == {
            'show_symbol': True,
            'symbol_position': 'before',
            'thousands_separator': ',',
            'decimal_separator': '.',
        }

    def test_patch_requires_body(self, client):
        assert client.patch(f'{BASE}/kilogram', json={}).status_code == 400

    def test_patch_engine_owned_field(self, client):
        response = client.patch(f'{BASE}/kilogram', json={'usage_count': 99})
        assert response.status_code == 422
        assert response.get_json()['errors']['error_code'] == 'INVALID_UNIT_DEFINITION'

    def test_patch_locked_unit_type(self, client):
        response = client.patch(f'{BASE}/gram', json={'unit_type': 'VOLUME'})
        assert response.status_code == 409
        assert response.get_json()['errors']['error_code'] == 'UNIT_IN_USE'

    def test_delete_system_unit_deactivates(self, client):
        response = client.delete(f'{BASE}/gallon')
        body = response.get_json()

        assert response.status_code == 200
        assert body['data']['deleted'] is False
        assert body['data']['unit']['is_active'] is False

    def test_delete_unused_custom_unit(self, client):
        client.post(BASE, json=_grain_payload(id='grain'))
        response = client.delete(f'{BASE}/grain')

        assert response.get_json()['data']['deleted'] is True
        assert client.get(f'{BASE}/grain').status_code == 404


class TestConvert:

    def test_convert(self, client):
        response = client.post(f'{BASE}/convert', json={
            'from_unit_id': 'gram', 'to_unit_id': 'kilogram', 'value': 2500,
        })
        result = response.get_json()['data']

        assert response.status_code == 200
        assert result['converted_value'] == 2.5
        assert result['conversion_path'] == 'direct'
        assert result['formatted_value'] == '2.50 kg'
        assert result['original_unit'] == {'id': 'gram', 'name': 'gram', 'symbol': 'g'}
        assert result['warnings'] == []

    def test_convert_records_usage(self, client):
        client.post(f'{BASE}/convert', json={'from_unit_id': 'cup', 'to_unit_id': 'liter', 'value': 2})
        cup = client.get(f'{BASE}/cup').get_json()['data']
        assert cup['usage_count'] == 1
        assert cup['last_used'] is not None

    def test_convert_formatted_string(self, client):
        response = client.post(f'{BASE}/convert', json={
            'from_unit_id': 'gram', 'to_unit_id': 'kilogram', 'value': '1,250.5 g',
        })
        assert response.get_json()['data']['converted_value'] == 1.25

    def test_convert_with_precision(self, client):
        response = client.post(f'{BASE}/convert', json={
            'from_unit_id': 'pound', 'to_unit_id': 'kilogram', 'value': 1, 'precision': '1',
        })
        assert response.get_json()['data']['converted_value'] == 0.5

    def test_convert_temperature(self, client):
        response = client.post(f'{BASE}/convert', json={
            'from_unit_id': 'fahrenheit', 'to_unit_id': 'celsius', 'value': 212,
        })
        assert response.get_json()['data']['converted_value'] == 100

    @pytest.mark.parametrize("payload, status, code", [
        ({'from_unit_id': 'gram', 'to_unit_id': 'liter', 'value': 1}, 422, 'INCOMPATIBLE_UNIT_TYPE'),
        ({'from_unit_id': 'gram', 'to_unit_id': 'stone', 'value': 1}, 404, 'UNIT_NOT_FOUND'),
        ({'from_unit_id': 'gram', 'to_unit_id': 'kilogram', 'value': -1}, 422, 'OUT_OF_RANGE'),
        ({'from_unit_id': 'gram', 'to_unit_id': 'kilogram', 'value': 1, 'precision': 11}, 422, 'OUT_OF_RANGE'),
        ({'from_unit_id': 'gram', 'to_unit_id': 'kilogram', 'value': 'lots'}, 400, 'VALUE_PARSE_ERROR'),
    ])
    def test_convert_errors(self, client, payload, status, code):
        response = client.post(f'{BASE}/convert', json=payload)
        assert response.status_code == status
        assert response.get_json()['errors']['error_code'] == code

    def test_convert_missing_fields(self, client):
        response = client.post(f'{BASE}/convert', json={'from_unit_id': 'gram'})
        assert response.status_code == 400

    def test_convert_bad_precision(self, client):
        response = client.post(f'{BASE}/convert', json={
            'from_unit_id': 'gram', 'to_unit_id': 'kilogram', 'value': 1, 'precision': 'high',
        })
        assert response.status_code == 400

    def test_convert_fractional_precision(self, client):
        response = client.post(f'{BASE}/convert', json={
            'from_unit_id': 'gram', 'to_unit_id': 'kilogram', 'value': 1, 'precision': 2.7,
        })
        assert response.status_code == 400
        assert 'whole number' in response.get_json()['message']

    def test_convert_integral_float_precision(self, client):
        response = client.post(f'{BASE}/convert', json={
            'from_unit_id': 'pound', 'to_unit_id': 'kilogram', 'value': 1, 'precision': 2.0,
        })
        assert response.status_code == 200
        assert response.get_json()['data']['precision'] == 2


class TestFormatAndParse:

    def test_format(self, client):
        response = client.post(f'{BASE}/kilogram/format', json={'value': 1234.5})
        assert response.get_json()['data']['formatted'] == '1,234.50 kg'

    def test_format_with_places(self, client):
        response = client.post(f'{BASE}/kilogram/format', json={'value': 1234.5, 'decimal_places': 0})
        assert response.get_json()['data']['formatted'] == '1,234 kg'

    def test_format_non_numeric(self, client):
        response = client.post(f'{BASE}/kilogram/format', json={'value': 'heavy'})
        assert response.status_code == 400

    def test_parse(self, client):
        response = client.post(f'{BASE}/kilogram/parse', json={'text': '1,234.50 kg'})
        assert response.get_json()['data']['value'] == 1234.5

    def test_parse_invalid(self, client):
        response = client.post(f'{BASE}/kilogram/parse', json={'text': 'heavy'})
        assert response.status_code == 400
        assert response.get_json()['errors']['error_code'] == 'VALUE_PARSE_ERROR'


def test_health(client):
    body = client.get('/health').get_json()
    assert body['status'] == 'ok'
    assert body['units'] == len(SYSTEM_UNITS) + len(TEMPERATURE_UNITS)
