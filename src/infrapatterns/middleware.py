"""トークン認証ミドルウェア。"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp


class TokenAuthMiddleware(BaseHTTPMiddleware):
    """クエリパラメータまたはBearerヘッダーのトークンを検証するミドルウェア。

    INFRAPATTERNS_URL_TOKEN が設定されている場合、`token` クエリパラメータか
    `Authorization: Bearer <token>` ヘッダーの一致を要求する。
    /health はヘルスチェック用のため検証をスキップする。
    """

    SKIP_PATHS = {"/health"}

    def __init__(self, app: ASGIApp, url_token: str = "") -> None:
        super().__init__(app)
        self.url_token = url_token

    def _request_token(self, request: Request) -> str:
        token = request.query_params.get("token", "")
        if token:
            return token
        scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
        if scheme.lower() == "bearer":
            return credentials.strip()
        return ""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.url_token:
            return await call_next(request)

        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        if self._request_token(request) != self.url_token:
            return JSONResponse(
                {"error": "Unauthorized", "message": "Invalid or missing token"},
                status_code=401,
            )

        return await call_next(request)
