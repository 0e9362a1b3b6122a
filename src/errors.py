from typing import Any, Callable, List, Optional
from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.requests import Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
import logging

logger = logging.getLogger(__name__)


class VoucherException(Exception):
    """This is the base class for all voucher engine errors"""
    pass


class InvalidToken(VoucherException):
    """User has been provided an invalid or expired token"""
    pass


class RevokedToken(VoucherException):
    """User has been provided a token that has been revoked"""
    pass


class AccessTokenRequired(VoucherException):
    """User has been provided a refresh token when an access token is needed"""
    pass


class UserNotFound(VoucherException):
    """The token refers to a user that no longer exists."""
    pass


class InsufficientPermission(VoucherException):
    """The acting user may not touch this voucher or set these ownership fields."""
    pass


class DiscountNotFound(VoucherException):
    """Id or code does not resolve to a live voucher."""
    pass


class DiscountCodeAlreadyExists(VoucherException):
    """A voucher with this code already exists."""
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Discount code '{code}' already exists")


class FieldError:
    __slots__ = ("field", "message")

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}

    def __eq__(self, other):
        return isinstance(other, FieldError) and (self.field, self.message) == (other.field, other.message)

    def __repr__(self):
        return f"<FieldError {self.field}: {self.message}>"


class DiscountRuleViolation(VoucherException):
    """Voucher payload breaks one or more data-model invariants."""
    def __init__(self, errors: List[FieldError]):
        self.errors = errors
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in errors))


def create_exception_handler(status_code: int, initial_detail: Any) -> Callable[[Request, Exception], JSONResponse]:
    async def exception_handler(request: Request, exc: VoucherException):
        content = dict(initial_detail)
        if exc.args and exc.args[0]:
            content["message"] = str(exc.args[0])
        if isinstance(exc, DiscountRuleViolation):
            content["errors"] = [e.to_dict() for e in exc.errors]
        return JSONResponse(
            content=content,
            status_code=status_code
        )

    return exception_handler


def _field_name(loc: tuple) -> Optional[str]:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) if parts else None


def register_all_errors(app: FastAPI):
    # Discount Not Found
    app.add_exception_handler(
        DiscountNotFound,
        create_exception_handler(
            status_code=status.HTTP_404_NOT_FOUND,
            initial_detail={
                "message": "Discount not found",
                "error_code": "discount_not_found"
            }
        )
    )

    # Duplicate Code
    app.add_exception_handler(
        DiscountCodeAlreadyExists,
        create_exception_handler(
            status_code=status.HTTP_409_CONFLICT,
            initial_detail={
                "message": "Discount code already exists",
                "error_code": "discount_code_conflict",
                "resolution": "Choose a different code"
            }
        )
    )

    # Invariant violations
    app.add_exception_handler(
        DiscountRuleViolation,
        create_exception_handler(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            initial_detail={
                "message": "Invalid discount data",
                "error_code": "validation_error"
            }
        )
    )

    # Insufficient Permission
    app.add_exception_handler(
        InsufficientPermission,
        create_exception_handler(
            status_code=status.HTTP_403_FORBIDDEN,
            initial_detail={
                "message": "You do not have sufficient permission",
                "error_code": "insufficient_permission"
            }
        )
    )

    # Access Token Required
    app.add_exception_handler(
        AccessTokenRequired,
        create_exception_handler(
            status_code=status.HTTP_401_UNAUTHORIZED,
            initial_detail={
                "message": "Access token is required",
                "error_code": "access_token_required"
            }
        )
    )

    # Invalid Token
    app.add_exception_handler(
        InvalidToken,
        create_exception_handler(
            status_code=status.HTTP_401_UNAUTHORIZED,
            initial_detail={
                "message": "you provided an invalid or expired token",
                "error_code": "invalid_token"
            }
        )
    )

    # Revoked Token
    app.add_exception_handler(
        RevokedToken,
        create_exception_handler(
            status_code=status.HTTP_401_UNAUTHORIZED,
            initial_detail={
                "message": "you provided a revoked token",
                "error_code": "revoked_token"
            }
        )
    )

    # User Not Found
    app.add_exception_handler(
        UserNotFound,
        create_exception_handler(
            status_code=status.HTTP_401_UNAUTHORIZED,
            initial_detail={
                "message": "Account not found",
                "error_code": "user_does_not_exist"
            }
        )
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": _field_name(tuple(err.get("loc", ()))), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "message": "Invalid request data",
                "error_code": "validation_error",
                "errors": errors
            }
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception(f"Database failure on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "message": "Storage is unavailable. Please try again later",
                "error_code": "infrastructure_error"
            }
        )

    @app.exception_handler(RedisError)
    async def redis_error_handler(request: Request, exc: RedisError):
        logger.exception(f"Redis failure on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "message": "Storage is unavailable. Please try again later",
                "error_code": "infrastructure_error"
            }
        )

    @app.exception_handler(500)
    async def internal_server_error_handler(request, exc):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "message": "Opps, Something went wrong. Please try again later",
                "error_code": "server_error"
            }
        )
