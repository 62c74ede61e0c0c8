import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import RedirectResponse

from sitecms.auth import GateDecision, evaluate_admin_gate
from sitecms.config import settings

logger = logging.getLogger(__name__)


class AdminGateMiddleware(BaseHTTPMiddleware):
    """
    Guards the admin pages.

    Only decides on token presence and validity; per-site and role checks
    happen in the route dependencies.
    """

    def __init__(self, app, cookie_name: str | None = None, login_path: str | None = None):
        super().__init__(app)
        self.cookie_name = cookie_name or settings.auth_cookie_name
        self.login_path = login_path or settings.admin_login_path

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        decision = evaluate_admin_gate(request.url.path, request.cookies.get(self.cookie_name))

        if decision == GateDecision.ALLOW:
            return await call_next(request)

        logger.info(f"Admin gate redirect for {request.url.path} ({decision.value})")
        response = RedirectResponse(url=self.login_path, status_code=307)
        if decision == GateDecision.REDIRECT_AND_CLEAR:
            response.delete_cookie(self.cookie_name, path="/")
        return response
