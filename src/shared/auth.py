"""Login and registration — the only places a `Session` is created."""

import requests
import structlog

from shared.backend.http_adapter import send
from shared.config import Settings, get_settings
from shared.schemas import AuthResponse, WireModel
from shared.session import Session

logger = structlog.get_logger(__name__)


class RegisterRequest(WireModel):
    full_name: str
    email: str
    password: str
    phone: str | None = None
    role: str = "CUSTOMER"
    store_name: str | None = None
    store_address: str | None = None
    region: str | None = None


def _authenticate(path: str, body: dict, settings: Settings, http: requests.Session | None) -> Session:
    http = http or requests.Session()
    data = send(http, "POST", f"{settings.api_url}{path}", settings.request_timeout, json=body)
    session = Session.from_auth(AuthResponse.model_validate(data))
    logger.info("Session opened", user_id=session.user_id, role=session.role)
    return session


def login(email: str, password: str, settings: Settings | None = None, http: requests.Session | None = None) -> Session:
    return _authenticate(
        "/auth/login",
        {"email": email, "password": password},
        settings or get_settings(),
        http,
    )


def register(request: RegisterRequest, settings: Settings | None = None, http: requests.Session | None = None) -> Session:
    return _authenticate("/auth/register", request.to_wire(), settings or get_settings(), http)
