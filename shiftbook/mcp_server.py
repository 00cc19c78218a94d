"""shiftbook MCP server.

Exposes tools to create, update, delete and list employee shifts. Every write
goes through the shift_core lifecycle service, so duration policy and
double-booking protection apply to all callers.
"""
from __future__ import annotations

import argparse
import logging
import os
from typing import Any

from mcp.server.fastmcp import FastMCP

from shift_core.errors import ShiftError
from shift_core.lifecycle import ROLE_ADMIN, ShiftLifecycleService
from shift_core.policy import ShiftPolicy

from .config import load_env, runtime_config
from .employee_client import EmployeeDirectoryClient
from .storage import SqliteShiftRepository

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "shiftbook",
    host=os.getenv("HOST", "127.0.0.1"),
    port=int(os.getenv("PORT", "8000")),
    instructions=(
        "Shift scheduling for employees. "
        "Creates, updates, deletes and lists shifts. Shifts must last between "
        "the configured minimum and maximum hours and may never overlap another "
        "shift of the same employee on the same day. Times accept HH:MM or HH:MM AM/PM."
    ),
)

_ENV_FILE: str | None = None
_SERVICE: ShiftLifecycleService | None = None
_DIRECTORY: EmployeeDirectoryClient | None = None


def _service() -> ShiftLifecycleService:
    global _SERVICE, _DIRECTORY
    if _SERVICE is None:
        load_env(_ENV_FILE or os.getenv("SHIFTBOOK_ENV_FILE"))
        cfg = runtime_config()
        if cfg.directory is not None:
            _DIRECTORY = EmployeeDirectoryClient(cfg.directory)
        _SERVICE = ShiftLifecycleService(
            SqliteShiftRepository(cfg.db_path),
            policy=ShiftPolicy(cfg.min_shift_hours, cfg.max_shift_hours),
            directory=_DIRECTORY,
        )
        logger.info(
            "shiftbook ready: db=%s hours=%g..%s directory=%s",
            cfg.db_path,
            cfg.min_shift_hours,
            cfg.max_shift_hours if cfg.max_shift_hours is not None else "open",
            cfg.directory.base_url if cfg.directory else "disabled",
        )
    return _SERVICE


def _success(data: Any, **extra: Any) -> dict[str, Any]:
    return {"status": "success", **extra, "data": data}


def _failure(exc: ShiftError) -> dict[str, Any]:
    return {"status": "error", "error": exc.to_dict()}


# -- Shift CRUD --

@mcp.tool()
def create_shift(employee_ref: str, date: str, start_time: str, end_time: str) -> dict[str, Any]:
    """Create a shift for an employee on a calendar day (YYYY-MM-DD).

    Rejected with a validation error for malformed input or out-of-range
    duration, and with a conflict error if it overlaps an existing shift.
    """
    try:
        shift = _service().create_shift(employee_ref, date, start_time, end_time)
    except ShiftError as exc:
        return _failure(exc)
    return _success({"shift": shift.to_dict()})


@mcp.tool()
def update_shift(
    shift_id: int,
    employee_ref: str | None = None,
    date: str | None = None,
    start_time: str | None = None,
    end_time: str | None = None,
) -> dict[str, Any]:
    """Change an existing shift. Omitted fields keep their current values."""
    try:
        shift = _service().update_shift(
            shift_id,
            employee_ref=employee_ref,
            calendar_date=date,
            start_time=start_time,
            end_time=end_time,
        )
    except ShiftError as exc:
        return _failure(exc)
    return _success({"shift": shift.to_dict()})


@mcp.tool()
def delete_shift(shift_id: int) -> dict[str, Any]:
    """Delete a shift by id. Reports not_found if it no longer exists."""
    try:
        _service().delete_shift(shift_id)
    except ShiftError as exc:
        return _failure(exc)
    return _success(None)


@mcp.tool()
def get_shift(shift_id: int) -> dict[str, Any]:
    """Load a single shift by id."""
    try:
        shift = _service().get_shift(shift_id)
    except ShiftError as exc:
        return _failure(exc)
    return _success({"shift": shift.to_dict()})


@mcp.tool()
def list_shifts(
    employee_ref: str | None = None,
    role: str = ROLE_ADMIN,
    date_from: str | None = None,
    date_to: str | None = None,
) -> dict[str, Any]:
    """List shifts sorted by date and start time.

    Admins see every shift unless employee_ref is given; employees only see
    their own.
    """
    try:
        shifts = _service().list_shifts(employee_ref, role=role, date_from=date_from, date_to=date_to)
    except ShiftError as exc:
        return _failure(exc)
    return _success({"shifts": [s.to_dict() for s in shifts]}, results=len(shifts))


# -- Employees --

@mcp.tool()
def list_employees() -> dict[str, Any]:
    """List assignable employees from the employee directory."""
    _service()
    if _DIRECTORY is None:
        raise ValueError("Employee directory is not configured (set SHIFTBOOK_DIRECTORY_URL)")
    employees = _DIRECTORY.list_employees()
    return _success({"employees": employees}, results=len(employees))


# -- Server entrypoints --

async def _run_http() -> None:
    import uvicorn
    from starlette.middleware.base import BaseHTTPMiddleware
    from starlette.responses import JSONResponse, PlainTextResponse
    from starlette.routing import Route

    api_key = os.getenv("MCP_API_KEY")

    class BearerAuth(BaseHTTPMiddleware):
        async def dispatch(self, request, call_next):
            if request.url.path == "/health":
                return await call_next(request)
            auth = request.headers.get("authorization", "")
            if not auth.startswith("Bearer ") or auth[7:] != api_key:
                return JSONResponse({"error": "unauthorized"}, status_code=401)
            return await call_next(request)

    starlette_app = mcp.streamable_http_app()

    if api_key:
        starlette_app.add_middleware(BearerAuth)

    starlette_app.routes.append(
        Route("/health", lambda r: PlainTextResponse("ok"))
    )

    config = uvicorn.Config(
        starlette_app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        log_level="info",
    )
    await uvicorn.Server(config).serve()


def main() -> None:
    global _ENV_FILE

    parser = argparse.ArgumentParser(description="Run shiftbook MCP server")
    parser.add_argument("--env-file", default=None, help="Path to .env file")
    parser.add_argument(
        "--transport",
        default=None,
        choices=["stdio", "sse", "streamable-http"],
        help="MCP transport (default: streamable-http when PORT is set, else stdio)",
    )
    args = parser.parse_args()
    _ENV_FILE = args.env_file

    load_env(_ENV_FILE or os.getenv("SHIFTBOOK_ENV_FILE"))
    logging.basicConfig(
        level=runtime_config().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    transport = args.transport
    if transport is None:
        transport = "streamable-http" if os.getenv("PORT") else "stdio"

    if transport == "streamable-http":
        import anyio
        anyio.run(_run_http)
    else:
        mcp.run(transport=transport)


if __name__ == "__main__":
    main()
