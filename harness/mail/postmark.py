"""A web application receiving Postmark inbound webhooks into the inbox queue."""

from __future__ import annotations

import hmac
import json
import logging
from email.utils import parsedate_to_datetime
from typing import Any

from werkzeug.exceptions import HTTPException
from werkzeug.routing import Map, Rule
from werkzeug.wrappers import Request, Response

from harness.mail.app import Application
from harness.mail.commands import Enqueue
from harness.mail.mailbox import Mailbox
from harness.mail.mailqueue import Discarded, QueuedEmailData
from harness.mail.message import Header

INBOUND_PATH = "/webhooks/postmark/inbound"

_log = logging.getLogger(__name__)


class _Rejected(Exception):
    """A request the webhook answers with 400."""


def _json_error(status: int, message: str) -> Response:
    return Response(
        json.dumps({"message": message}), status=status, mimetype="application/json"
    )


def _lookup(obj: dict, key: str) -> Any:
    if key in obj:
        return obj[key]
    lowered = key.lower()
    return next((v for k, v in obj.items() if k.lower() == lowered), None)


def _text(obj: dict, key: str) -> str:
    value = _lookup(obj, key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise _Rejected("invalid payload")
    return value


def _object(value: Any) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise _Rejected("invalid payload")
    return value


def _objects(obj: dict, key: str) -> list[dict]:
    value = _lookup(obj, key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise _Rejected("invalid payload")
    return [_object(item) for item in value]


def _read_payload(request: Request) -> dict:
    body = request.get_data()
    if not body:
        return {}
    if request.mimetype != "application/json":
        raise _Rejected("invalid payload")
    try:
        payload = json.loads(body)
    except ValueError:
        raise _Rejected("invalid payload") from None
    return _object(payload)


def _parse_message(request: Request) -> QueuedEmailData:
    payload = _read_payload(request)

    sender = _text(_object(_lookup(payload, "FromFull")), "Email")
    recipients = [_text(r, "Email") for r in _objects(payload, "ToFull")]
    headers = [
        Header(name=_text(h, "Name"), value=_text(h, "Value"))
        for h in _objects(payload, "Headers")
    ]
    message = QueuedEmailData(
        id=_text(payload, "MessageID"),
        sender=sender,
        to=recipients,
        subject=_text(payload, "Subject"),
        body=_text(payload, "TextBody"),
        html_body=_text(payload, "HtmlBody"),
        headers=headers,
    )

    try:
        message.created_at = parsedate_to_datetime(_text(payload, "Date"))
    except (TypeError, ValueError, IndexError):
        raise _Rejected("invalid date") from None
    if message.created_at is None:
        raise _Rejected("invalid date")
    return message


def _handle_inbound(application: Application, request: Request) -> Response:
    try:
        message = _parse_message(request)
    except _Rejected as exc:
        return _json_error(400, str(exc))

    try:
        application.commands.enqueue(Enqueue(mailbox=Mailbox.INBOX, mail=message))
    except Discarded as exc:
        _log.info("Email discarded", extra={"email_id": message.id, "error": str(exc)})
        return Response(status=202)
    except Exception:
        _log.exception("inbound e-mail failed", extra={"email_id": message.id})
        return _json_error(500, "Internal Server Error")

    return Response(status=200)


def create_app(application: Application, username: str, password: str):
    """Build the WSGI application guarding the webhook with basic auth."""
    routes = Map([Rule(INBOUND_PATH, endpoint="inbound", methods=["POST"])])
    expected_user = username.encode()
    expected_password = password.encode()

    def authorized(request: Request) -> bool:
        auth = request.authorization
        if auth is None or (auth.type or "").lower() != "basic":
            return False
        user_ok = hmac.compare_digest((auth.username or "").encode(), expected_user)
        pass_ok = hmac.compare_digest(
            (auth.password or "").encode(), expected_password
        )
        return user_ok and pass_ok

    @Request.application
    def app(request: Request):
        try:
            routes.bind_to_environ(request.environ).match()
        except HTTPException as exc:
            return exc
        if not authorized(request):
            response = _json_error(401, "Unauthorized")
            response.headers["WWW-Authenticate"] = 'basic realm="Restricted"'
            return response
        return _handle_inbound(application, request)

    return app