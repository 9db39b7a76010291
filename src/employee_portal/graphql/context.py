"""Per-request GraphQL context."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..access.gate import AccessGate
from ..container import Container
from ..loaders.loader_set import LoaderSet
from ..users.model import Identity


@dataclass
class RequestContext:
    container: Container
    identity: Optional[Identity]
    loaders: LoaderSet
    gate: AccessGate


def build_context(container: Container, authorization: Optional[str]) -> RequestContext:
    """Resolve the bearer token and create fresh loaders for one request."""
    identity = container.tokens.identity_from_header(authorization)
    loaders = container.new_loaders()
    gate = AccessGate(identity, loaders, container.auth_service.issue_otp)
    return RequestContext(container=container, identity=identity, loaders=loaders, gate=gate)
