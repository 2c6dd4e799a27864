def find_missing_fields(data: dict, required) -> list:
    """
    Names of required fields that are absent, not strings, or blank.
    """
    return [
        field for field in required
        if not isinstance(data.get(field), str) or not data.get(field).strip()
    ]
