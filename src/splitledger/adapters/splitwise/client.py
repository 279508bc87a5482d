"""HTTP client for the Splitwise API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, Self
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ValidationError

from splitledger.adapters.http_resilience import ResilientClient
from splitledger.config.splitwise import SplitwiseConfig, get_splitwise_token_config
from splitledger.domain.migration.errors import ForeignAuthError, UpstreamUnavailableError
from splitledger.domain.ports.foreign_ledger import ForeignLedger, TokenExchanger

from .schema import (
    CurrentUserResponse,
    ExpensesResponse,
    FriendsResponse,
    GroupsResponse,
    SplitwiseExpense,
    TokenResponse,
)
from .translator import translate_expense, translate_group, translate_user, unreadable_expense

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from types import TracebackType

    from splitledger.config.http_resilience import ResilienceConfig
    from splitledger.domain.ports.foreign_ledger import ForeignExpense, ForeignGroup, ForeignMember

log = getLogger(__name__)

_AUTH_STATUS_CODES = frozenset({401, 403})


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _parse[TPayload: BaseModel](model: type[TPayload], response: httpx.Response) -> TPayload:
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise UpstreamUnavailableError(
            f"Unexpected Splitwise payload from {response.request.url.path}",
            status_code=response.status_code,
        ) from exc


def _raise_for_status(response: httpx.Response) -> None:
    if response.status_code in _AUTH_STATUS_CODES:
        raise ForeignAuthError(f"Splitwise rejected the credentials ({response.status_code})")
    if response.is_error:
        raise UpstreamUnavailableError(
            f"Splitwise request to {response.request.url.path} failed ({response.status_code})",
            status_code=response.status_code,
        )


def _read_expense(raw: Any) -> ForeignExpense:
    try:
        return translate_expense(SplitwiseExpense.model_validate(raw))
    except ValidationError as exc:
        placeholder = unreadable_expense(raw)
        log.warning(
            "Skipping unreadable Splitwise expense %s (%d validation error(s))",
            placeholder.foreign_id,
            exc.error_count(),
        )
        return placeholder


@dataclass(slots=True)
class SplitwiseClient:
    """Read-only Splitwise session for one access token.

    All calls of a session run on one private event loop and share one HTTP client, so
    its rate limiter, cache and connection pool span the whole session. Call ``close()``
    (or use the client as a context manager) when done.
    """

    token: str
    config: SplitwiseConfig = field(default_factory=get_splitwise_token_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _runner: asyncio.Runner | None = field(default=None, init=False, repr=False)
    _http: ResilientClient | None = field(default=None, init=False, repr=False)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._runner is None:
            return
        try:
            if self._http is not None:
                self._runner.run(self._http.aclose())
        finally:
            self._http = None
            self._runner.close()
            self._runner = None

    def current_user(self) -> ForeignMember:
        payload = self._get(CurrentUserResponse, "get_current_user")
        return translate_user(payload.user)

    def list_groups(self) -> list[ForeignGroup]:
        payload = self._get(GroupsResponse, "get_groups")
        return [translate_group(group) for group in payload.groups]

    def list_expenses(
        self,
        group_id: int | None,
        *,
        limit: int,
        offset: int,
    ) -> list[ForeignExpense]:
        """One page of expenses; unreadable records come back as placeholders."""
        params: dict[str, int] = {"limit": limit, "offset": offset}
        if group_id is not None:
            params["group_id"] = group_id
        payload = self._get(ExpensesResponse, "get_expenses", params=params)
        return [_read_expense(raw) for raw in payload.expenses]

    def list_friends(self) -> list[ForeignMember]:
        payload = self._get(FriendsResponse, "get_friends")
        return [translate_user(friend) for friend in payload.friends]

    def _run[TResult](self, call: Coroutine[Any, Any, TResult]) -> TResult:
        if self._runner is None:
            self._runner = asyncio.Runner()
        return self._runner.run(call)

    def _get[TPayload: BaseModel](
        self,
        model: type[TPayload],
        path: str,
        *,
        params: dict[str, int] | None = None,
    ) -> TPayload:
        return self._run(self._get_async(model, path, params=params))

    def _session(self) -> ResilientClient:
        if self._http is None:
            self._http = self.client_factory(
                self.config.resilience.with_headers({"Authorization": f"Bearer {self.token}"})
            )
        return self._http

    async def _get_async[TPayload: BaseModel](
        self,
        model: type[TPayload],
        path: str,
        *,
        params: dict[str, int] | None,
    ) -> TPayload:
        try:
            response = await self._session().get(path, params=httpx.QueryParams(params or {}))
        except httpx.HTTPError as exc:
            log.warning("Splitwise request %s failed: %s", path, exc)
            raise UpstreamUnavailableError(f"Splitwise request {path} failed: {exc}") from exc
        _raise_for_status(response)
        return _parse(model, response)


@dataclass(slots=True)
class SplitwiseOAuth:
    """Authorization-code exchange against the Splitwise token endpoint."""

    config: SplitwiseConfig
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def exchange_code(self, code: str, *, redirect_uri: str | None = None) -> str:
        return asyncio.run(self._exchange_code_async(code, redirect_uri=redirect_uri))

    async def _exchange_code_async(self, code: str, *, redirect_uri: str | None) -> str:
        if not self.config.client_id or not self.config.client_secret:
            raise ForeignAuthError("Splitwise client credentials are not configured")
        form = {
            "grant_type": "authorization_code",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code": code,
        }
        effective_redirect = redirect_uri or self.config.redirect_uri
        if effective_redirect:
            form["redirect_uri"] = effective_redirect

        async with self.client_factory(self.config.resilience) as client:
            try:
                response = await client.post(self.config.token_url, data=form)
            except httpx.HTTPError as exc:
                raise ForeignAuthError(f"Splitwise token exchange failed: {exc}") from exc

        if response.is_error:
            log.error("Splitwise token exchange failed with status %s", response.status_code)
            raise ForeignAuthError(
                "Splitwise token exchange failed; the authorization code may have expired"
            )
        try:
            return TokenResponse.model_validate(response.json()).access_token
        except (ValueError, ValidationError) as exc:
            raise ForeignAuthError("Splitwise token response did not contain a token") from exc


def authorization_url(config: SplitwiseConfig, *, redirect_uri: str | None = None) -> str:
    """First leg of the interactive flow: where to send the user to approve access."""

    if not config.client_id:
        raise ValueError("SPLITWISE_CLIENT_ID is required to build an authorization URL")
    params = {"response_type": "code", "client_id": config.client_id}
    effective_redirect = redirect_uri or config.redirect_uri
    if effective_redirect:
        params["redirect_uri"] = effective_redirect
    return f"{config.authorize_url}?{urlencode(params)}"


def splitwise_ledger_factory(
    config: SplitwiseConfig | None = None,
    *,
    client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
) -> Callable[[str], SplitwiseClient]:
    effective_config = config or get_splitwise_token_config()

    def build(token: str) -> SplitwiseClient:
        return SplitwiseClient(token=token, config=effective_config, client_factory=client_factory)

    return build


if TYPE_CHECKING:
    _ledger_check: ForeignLedger = SplitwiseClient(token="")
    _exchanger_check: TokenExchanger = SplitwiseOAuth(config=SplitwiseConfig())
