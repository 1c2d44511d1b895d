import logging
import uuid

from flask import Blueprint, request

from ...extensions import get_engine, get_registry
from ...models import MeasurementUnit
from ...services.unit_conversion import format_value, parse_value
from ...services.unit_conversion.errors import (
    DuplicateUnitError,
    InvalidBaseUnitError,
    MeasurementError,
    UnitInUseError,
    UnitNotFoundError,
    ValueParseError,
)
from ...utils.api_responses import APIResponse
from ...utils.error_messages import ErrorMessages as EM

logger = logging.getLogger(__name__)

unit_api_bp = Blueprint('unit_api', __name__, url_prefix='/api/measurement-units')

_TRUE_ARGS = {'1', 'true', 'yes', 'on'}


def _status_for(error: MeasurementError) -> int:
    if isinstance(error, UnitNotFoundError):
        return 404
    if isinstance(error, (DuplicateUnitError, InvalidBaseUnitError, UnitInUseError)):
        return 409
    if isinstance(error, ValueParseError):
        return 400
    return 422


@unit_api_bp.errorhandler(MeasurementError)
def handle_measurement_error(error):
    status = _status_for(error)
    logger.info("Measurement API rejected request: %s %s", error.code, error.context)
    return APIResponse.from_error(error, status)


def _missing(payload, fields):
    missing = [f for f in fields if payload.get(f) in (None, '')]
    if missing:
        return APIResponse.error(EM.MISSING_PARAMETERS.format(fields=', '.join(missing)), status_code=400)
    return None


def _whole_number(raw):
    """None when absent, the int when whole, False when not a whole number"""
    if raw in (None, ''):
        return None
    if isinstance(raw, bool):
        return False
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else False
    try:
        return int(str(raw).strip())
    except ValueError:
        return False


@unit_api_bp.route('', methods=['GET'])
def list_units():
    """List units, optionally filtered by type"""
    include_inactive = (request.args.get('include_inactive') or '').lower() in _TRUE_ARGS
    unit_type = request.args.get('unit_type') or None
    registry = get_registry()
    try:
        units = registry.list_units(unit_type=unit_type, include_inactive=include_inactive)
    except ValueError as e:
        return APIResponse.error(EM.INVALID_PAYLOAD.format(reason=str(e)), status_code=400)
    return APIResponse.success({'units': [u.to_dict() for u in units], 'summary': registry.summary()})


@unit_api_bp.route('', methods=['POST'])
def create_unit():
    """Register a new measurement unit"""
    payload = APIResponse.handle_request_content()
    missing = _missing(payload, ('name', 'symbol', 'unit_type'))
    if missing:
        return missing

    payload = dict(payload)
    payload['id'] = payload.get('id') or uuid.uuid4().hex
    # system units only come from the seed catalog
    payload['is_system_unit'] = False
    try:
        unit = MeasurementUnit.from_dict(payload)
    except (KeyError, TypeError, ValueError) as e:
        return APIResponse.error(EM.INVALID_PAYLOAD.format(reason=str(e)), status_code=400)

    unit = get_registry().register(unit)
    return APIResponse.success(unit.to_dict(), message=EM.UNIT_CREATED, status_code=201)


@unit_api_bp.route('/<unit_id>', methods=['GET'])
def get_unit(unit_id):
    unit = get_registry().get(unit_id)
    return APIResponse.success(unit.to_dict())


@unit_api_bp.route('/<unit_id>', methods=['PATCH'])
def update_unit(unit_id):
    """Update mutable fields of a unit"""
    payload = APIResponse.handle_request_content()
    if not payload:
        return APIResponse.error(EM.MISSING_PARAMETERS.format(fields='body'), status_code=400)
    unit = get_registry().update(unit_id, **payload)
    return APIResponse.success(unit.to_dict(), message=EM.UNIT_UPDATED)


@unit_api_bp.route('/<unit_id>', methods=['DELETE'])
def delete_unit(unit_id):
    """Delete a unit, or deactivate it when it is in use"""
    unit, deleted = get_registry().retire(unit_id)
    message = EM.UNIT_DELETED if deleted else EM.UNIT_DEACTIVATED
    return APIResponse.success({'unit': unit.to_dict(), 'deleted': deleted}, message=message)


@unit_api_bp.route('/convert', methods=['POST'])
def convert_units():
    """Convert a value between two units"""
    payload = APIResponse.handle_request_content()
    missing = _missing(payload, ('from_unit_id', 'to_unit_id', 'value'))
    if missing:
        return missing

    from_unit_id = str(payload['from_unit_id'])
    value = payload['value']
    if isinstance(value, str):
        # formatted input such as "1,250.5 g"
        value = parse_value(value, get_registry().get(from_unit_id))

    precision = _whole_number(payload.get('precision'))
    if precision is False:
        return APIResponse.error(EM.INVALID_PAYLOAD.format(reason='precision must be a whole number'), status_code=400)

    result = get_engine().convert(value, from_unit_id, str(payload['to_unit_id']), precision=precision)
    return APIResponse.success(result.to_dict(), message=EM.CONVERSION_COMPLETE)


@unit_api_bp.route('/<unit_id>/format', methods=['POST'])
def format_unit_value(unit_id):
    payload = APIResponse.handle_request_content()
    missing = _missing(payload, ('value',))
    if missing:
        return missing
    unit = get_registry().get(unit_id)
    try:
        formatted = format_value(payload['value'], unit, payload.get('decimal_places'))
    except (ArithmeticError, TypeError, ValueError) as e:
        raise ValueParseError("value is not numeric", {'unit_id': unit_id, 'value': payload['value']}) from e
    return APIResponse.success({'formatted': formatted})


@unit_api_bp.route('/<unit_id>/parse', methods=['POST'])
def parse_unit_value(unit_id):
    payload = APIResponse.handle_request_content()
    missing = _missing(payload, ('text',))
    if missing:
        return missing
    unit = get_registry().get(unit_id)
    return APIResponse.success({'value': parse_value(payload['text'], unit)})


__all__ = ['unit_api_bp']
