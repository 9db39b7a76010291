from __future__ import annotations

from flask import Flask, Request, Response, jsonify
from strawberry.flask.views import AsyncGraphQLView

from ..container import Container
from .context import RequestContext, build_context
from .schema import build_schema


class PortalGraphQLView(AsyncGraphQLView):
    def __init__(self, *, container: Container, **kwargs):
        super().__init__(**kwargs)
        self.container = container

    async def get_context(self, request: Request, response: Response) -> RequestContext:
        return build_context(self.container, request.headers.get("Authorization"))


def register(app: Flask, container: Container, settings) -> None:
    schema = build_schema(
        max_depth=int(getattr(settings, "MAX_QUERY_DEPTH")),
        slow_operation_ms=int(getattr(settings, "SLOW_OPERATION_MS")),
    )

    app.add_url_rule(
        "/graphql",
        view_func=PortalGraphQLView.as_view(
            "graphql",
            container=container,
            schema=schema,
            graphql_ide="graphiql" if app.config["DEBUG"] else None,
        ),
    )

    @app.get("/health")
    def health():
        return jsonify(status="ok")
