from typing import Any

from rest_framework.response import Response


def error_response(message: str, status: int, details: Any = None, **extra) -> Response:
    data = {
        "error": message,
        "status": status,
    }
    if details is not None:
        data["details"] = details
    data.update({key: value for key, value in extra.items() if value is not None})
    return Response(data=data, status=status)
