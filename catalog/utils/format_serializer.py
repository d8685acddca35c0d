def format_serializer_errors(errors) -> dict | str | list:
    """Flatten DRF error structures into plain strings per field."""
    if isinstance(errors, dict):
        return {field: format_serializer_errors(value) for field, value in errors.items()}

    if isinstance(errors, list):
        if all(isinstance(item, str) for item in errors):
            return " ".join(str(item) for item in errors)
        return [format_serializer_errors(item) for item in errors]

    return str(errors)


def summarize_serializer_errors(errors) -> str:
    """One-line message for the ``error`` key, e.g. ``"title: This field is required."``."""
    formatted = format_serializer_errors(errors)
    if isinstance(formatted, dict):
        parts = []
        for field, value in formatted.items():
            text = summarize_serializer_errors(value) if not isinstance(value, str) else value
            parts.append(text if field == "non_field_errors" else f"{field}: {text}")
        return "; ".join(parts)
    if isinstance(formatted, list):
        return "; ".join(summarize_serializer_errors(item) for item in formatted)
    return formatted
