"""Top-contributor resolution through the GitHub REST API.

Each dependent is resolved by three chained lookups:

1. ``GET /repos/{owner}/{repo}/contributors``: the first entry is the top
   contributor. Failure here means no record for the dependent.
2. ``GET /users/{login}``: name and company. Failure leaves them None.
3. ``GET /repos/{owner}/{repo}/commits?author={login}``: the author email of
   the most recent commit. Failure leaves it None.

Every lookup gets one fixed-delay retry after a 429. All failures are logged
with the owner, repo and lookup that failed; none of them raise.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from depscout.common.exceptions import (
    DataFormatAssumptionException,
    RateLimitedException,
    TransientException,
)
from depscout.common.request_manager import SyncRequestManager
from depscout.config import ScoutConfig
from depscout.data_types import (
    DependentRef,
    HttpMethod,
    HTTPRequestParams,
    Request,
    Response,
    split_dependent_ref,
)
from depscout.github.models import ContributorRecord

logger = logging.getLogger(__name__)

API_ACCEPT = "application/vnd.github.v3+json"


class ContributorResolver:
    """Resolves the top contributor of a dependent repository.

    Example::

        resolver = ContributorResolver(config, manager)
        record = resolver.resolve("acme/widget-plugin")
        if record is not None:
            print(record.username, record.email)
    """

    def __init__(
        self,
        config: ScoutConfig,
        request_manager: SyncRequestManager,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.request_manager = request_manager
        self.sleep = sleep

    def api_request(
        self,
        path: str,
        step: str,
        params: dict[str, Any] | None = None,
        **context: Any,
    ) -> Request:
        return Request(
            request=HTTPRequestParams(
                method=HttpMethod.GET,
                url=f"{self.config.api_url}{path}",
                params=params,
                headers={"Accept": API_ACCEPT},
                auth=self.config.auth,
            ),
            step=step,
            context=context,
        )

    def _log_failure(self, request: Request, cause: str) -> None:
        where = ", ".join(f"{k}={v}" for k, v in request.context.items())
        logger.error(
            f"{request.step} lookup failed ({where}): {cause}",
            extra={"step": request.step, **request.context},
        )

    def _fetch(self, request: Request) -> Response | None:
        """Fetch a request, allowing a single wait-and-retry on 429.

        Returns:
            The Response, whatever its status, or None if the request could
            not be completed.
        """
        retried = False
        while True:
            try:
                return self.request_manager.resolve_request(request)
            except RateLimitedException as e:
                if retried:
                    self._log_failure(request, str(e))
                    return None
                retried = True
                logger.warning(
                    f"Rate limit exceeded during {request.step} lookup. "
                    f"Waiting {self.config.rate_limit_delay:g}s before retrying...",
                    extra={"step": request.step, **request.context},
                )
                self.sleep(self.config.rate_limit_delay)
            except TransientException as e:
                self._log_failure(request, str(e))
                return None

    def _fetch_json(self, request: Request) -> Any | None:
        """Fetch a request and decode its JSON body.

        Returns:
            The decoded body of a 200 response, or None on any failure.
        """
        response = self._fetch(request)
        if response is None:
            return None
        if not response.ok:
            self._log_failure(request, f"HTTP {response.status_code}")
            return None
        try:
            return response.json()
        except ValueError as e:
            self._log_failure(request, f"invalid JSON ({e})")
            return None

    def top_contributor(self, owner: str, repo: str) -> dict[str, Any] | None:
        """Return the first entry of the repository's contributor list."""
        request = self.api_request(
            f"/repos/{owner}/{repo}/contributors",
            "contributors",
            owner=owner,
            repo=repo,
        )
        contributors = self._fetch_json(request)
        if contributors is None:
            return None
        if not isinstance(contributors, list) or not contributors:
            self._log_failure(request, "no contributors found")
            return None

        first = contributors[0]
        if not isinstance(first, dict) or not first.get("login"):
            self._log_failure(request, "contributor entry has no login")
            return None
        return first

    def user_profile(
        self, login: str, owner: str, repo: str
    ) -> dict[str, str | None]:
        """Return the user's name and company.

        Either value is None when the profile can't be fetched or holds
        something other than a string there.
        """
        fields: dict[str, str | None] = {"name": None, "company": None}
        request = self.api_request(
            f"/users/{login}", "profile", owner=owner, repo=repo, login=login
        )
        profile = self._fetch_json(request)
        if profile is None:
            return fields
        if not isinstance(profile, dict):
            self._log_failure(request, "profile is not an object")
            return fields

        for key in fields:
            value = profile.get(key)
            if value is None or isinstance(value, str):
                fields[key] = value or None
            else:
                self._log_failure(
                    request, f"{key} is {type(value).__name__}, not a string"
                )
        return fields

    def commit_email(self, owner: str, repo: str, login: str) -> str | None:
        """Return the author email of the user's most recent commit."""
        request = self.api_request(
            f"/repos/{owner}/{repo}/commits",
            "commits",
            params={"author": login},
            owner=owner,
            repo=repo,
            login=login,
        )
        commits = self._fetch_json(request)
        if commits is None:
            return None
        if not isinstance(commits, list) or not commits:
            self._log_failure(request, "no commits found")
            return None

        try:
            email = commits[0]["commit"]["author"]["email"]
        except (KeyError, TypeError, IndexError):
            self._log_failure(request, "commit has no author email")
            return None
        if email is not None and not isinstance(email, str):
            self._log_failure(
                request, f"author email is {type(email).__name__}, not a string"
            )
            return None
        return email or None

    def resolve(self, dependent: DependentRef) -> ContributorRecord | None:
        """Resolve one dependent into a ContributorRecord.

        Args:
            dependent: Repository identifier in ``owner/repo`` form.

        Returns:
            The record, or None if the dependent should be skipped.
        """
        try:
            owner, repo = split_dependent_ref(dependent)
        except ValueError as e:
            logger.error(str(e), extra={"dependent": dependent})
            return None

        contributor = self.top_contributor(owner, repo)
        if contributor is None:
            return None
        login = contributor["login"]

        profile = self.user_profile(login, owner, repo)
        email = self.commit_email(owner, repo, login)

        deferred = ContributorRecord.raw(
            request_url=f"{self.config.api_url}/repos/{owner}/{repo}/contributors",
            username=login,
            full_name=profile["name"],
            email=email,
            company=profile["company"],
            contributions=contributor.get("contributions"),
            repository=f"{owner}/{repo}",
        )
        try:
            return deferred.confirm()
        except DataFormatAssumptionException as e:
            error_summary = ", ".join(
                f"{err['loc'][0]}: {err['msg']}" for err in e.errors
            )
            logger.error(
                f"Contributor record for {owner}/{repo} failed validation: "
                f"{error_summary}",
                extra={"owner": owner, "repo": repo},
            )
            return None
