"""
Result values returned by every NAS operation.

A request either succeeds or fails in one of three ways. Failures are falsy
and carry no payload, so callers can test the result directly or branch on
its type when the cause matters.
"""

from dataclasses import dataclass, field
from typing import Any, NoReturn, Union

from dstation_cli.exceptions import NasApiError, NasHttpError, NasTransportError


@dataclass(frozen=True)
class Success:
    """The server accepted the request."""

    payload: Any
    envelope: dict[str, Any] = field(default_factory=dict, repr=False)

    def __bool__(self) -> bool:
        return True

    def unwrap(self) -> Any:
        return self.payload


class _Failure:
    payload = None

    def __bool__(self) -> bool:
        return False

    def unwrap(self) -> NoReturn:
        raise self.to_exception()

    def to_exception(self) -> Exception:
        raise NotImplementedError


@dataclass(frozen=True)
class TransportError(_Failure):
    """The NAS could not be reached, or its reply was not valid JSON."""

    message: str

    def to_exception(self) -> Exception:
        return NasTransportError(self.message)


@dataclass(frozen=True)
class HttpStatusError(_Failure):
    """The NAS answered with a status other than 200."""

    status: int

    def to_exception(self) -> Exception:
        return NasHttpError(self.status)


@dataclass(frozen=True)
class ApiError(_Failure):
    """The NAS answered with ``success: false``."""

    code: int | None
    message: str
    # The decoded body as received, which may not be an object
    envelope: Any = field(default_factory=dict, repr=False)

    def to_exception(self) -> Exception:
        return NasApiError(self.code, self.message)


ApiResult = Union[Success, TransportError, HttpStatusError, ApiError]
