from typing import Any, Dict, Optional, Tuple

from flask import Response, jsonify, request

from .error_messages import ErrorMessages


class APIResponse:
    """Standardized API response envelope"""

    @staticmethod
    def success(data: Any = None, message: str = "Success", status_code: int = 200) -> Tuple[Response, int]:
        return jsonify({'success': True, 'message': message, 'data': data}), status_code

    @staticmethod
    def error(message: str, errors: Optional[Dict] = None, status_code: int = 400) -> Tuple[Response, int]:
        return jsonify({'success': False, 'message': message, 'errors': errors or {}}), status_code

    @staticmethod
    def from_error(error, status_code: int) -> Tuple[Response, int]:
        """Envelope for an engine error: text from its code, payload from its context"""
        return APIResponse.error(ErrorMessages.for_code(error.code), errors=error.to_dict(), status_code=status_code)

    @staticmethod
    def handle_request_content() -> Dict[str, Any]:
        """JSON object body, else form fields, else an empty dict"""
        if request.is_json:
            data = request.get_json(silent=True)
            return data if isinstance(data, dict) else {}
        if request.form:
            return request.form.to_dict()
        return {}


__all__ = ['APIResponse']
