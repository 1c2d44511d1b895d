"""
Centralized Error Messages

Single source of truth for user-facing messages returned by the API. The
conversion engine only raises error codes with context; this module turns
those codes into text.

Usage:
    from measureworks.utils.error_messages import ErrorMessages as EM

    return APIResponse.error(EM.MISSING_PARAMETERS.format(fields="value"), status_code=400)

Engine errors go through APIResponse.from_error, which looks messages up by
error code with ErrorMessages.for_code.
"""


class ErrorMessages:
    """User-facing error messages - never contain HTML or special characters"""

    # ==================== UNIT REGISTRATION ====================
    DUPLICATE_UNIT = "A unit with this id or symbol already exists for this unit type."
    INVALID_BASE_UNIT = "This unit type already has an active base unit, or the base unit reference is invalid."
    INVALID_CONVERSION_FACTOR = "Conversion factors must be non-zero and point to registered units of the same type."
    INVALID_UNIT_DEFINITION = "The unit definition is invalid."
    UNIT_IN_USE = "This unit is in use and cannot be changed that way. Deactivate it instead."
    REGISTRATION_ERROR = "The unit could not be saved."

    # ==================== CONVERSION ====================
    UNIT_NOT_FOUND = "Measurement unit not found or inactive."
    INCOMPATIBLE_UNIT_TYPE = "Units of different types cannot be converted."
    NO_CONVERSION_PATH = "No conversion is defined between these units."
    OUT_OF_RANGE = "The value is outside the allowed range for this unit."
    PRECISION_LOSS = "The value has more precision than this unit supports."
    VALIDATION_ERROR = "The value is not valid for this unit."
    VALUE_PARSE_ERROR = "The value could not be read as a number."
    CONVERSION_ERROR = "The conversion failed."

    # ==================== REQUESTS ====================
    MISSING_PARAMETERS = "Missing required parameters: {fields}"
    INVALID_PAYLOAD = "Invalid request payload: {reason}"
    GENERIC = "Something went wrong."

    # ==================== SUCCESS ====================
    UNIT_CREATED = "Measurement unit created successfully"
    UNIT_UPDATED = "Measurement unit updated successfully"
    UNIT_DELETED = "Measurement unit deleted successfully"
    UNIT_DEACTIVATED = "Measurement unit is in use and has been deactivated"
    CONVERSION_COMPLETE = "Conversion complete"

    @classmethod
    def for_code(cls, code: str) -> str:
        return getattr(cls, code, cls.GENERIC)
