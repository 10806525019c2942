"""
Error code tables for the SYNO web API.

Codes below 400 are shared by every API; codes from 400 up are defined
per API, so the same number means different things for auth and tasks.
"""

COMMON_ERRORS = {
    100: "Unknown error",
    101: "Invalid parameter",
    102: "The requested API does not exist",
    103: "The requested method does not exist",
    104: "The requested version does not support the functionality",
    105: "The logged in session does not have permission",
    106: "Session timeout",
    107: "Session interrupted by duplicate login",
    119: "SID not found",
}

AUTH_ERRORS = {
    400: "No such account or incorrect password",
    401: "Account disabled",
    402: "Permission denied",
    403: "2-step verification code required",
    404: "Failed to authenticate 2-step verification code",
    406: "Enforce to authenticate with 2-factor authentication code",
}

TASK_ERRORS = {
    400: "File upload failed",
    401: "Max number of tasks reached",
    402: "Destination denied",
    403: "Destination does not exist",
    404: "Invalid task id",
    405: "Invalid task action",
    406: "No default destination",
    407: "Set destination failed",
    408: "File does not exist",
}


def describe_error(code: int | None, table: dict[int, str] | None = None) -> str:
    """Gets the human-readable meaning of an error code."""
    if code is None:
        return "Malformed response envelope"
    if table and code in table:
        return table[code]
    return COMMON_ERRORS.get(code, "Unknown error")
