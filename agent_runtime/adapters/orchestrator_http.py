"""Orchestrator HTTP gateway implementation for job acquisition and reporting."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Final

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agent_runtime.domain import (
    ChildJobRequest,
    Job,
    JobErrorSummary,
    ResultSerializationError,
    domain_to_json_compatible,
)

from .gateway_errors import (
    GatewayAuthError,
    GatewayNetworkError,
    GatewayProtocolError,
    GatewayTimeoutError,
    GatewayValidationError,
)
from .interfaces import OrchestratorGatewayPort


class _JobWireModel(BaseModel):
    """Wire contract for one job object returned by the orchestrator."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    payload: Any = None
    status: str = "running"
    result: Any = None
    error: Any = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    user_id: str | None = Field(default=None, alias="userId")
    parent_job_id: str | None = Field(default=None, alias="parentJobId")

    def wire_to_domain(self) -> Job:
        """Convert wire model into the immutable domain job.

        Returns:
            Job: Domain job instance.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        return Job(
            id=self.id,
            type=self.type,
            payload=self.payload,
            status=self.status,
            created_at=self.created_at,
            result=self.result,
            error=self.error,
            user_id=self.user_id,
            parent_job_id=self.parent_job_id,
        )


class HttpOrchestratorGateway(OrchestratorGatewayPort):
    """Gateway implementation for the orchestrator REST job-queue API."""

    _USER_AGENT: Final[str] = "agent-runtime/1.0 (Python/httpx)"
    _POLL_TRANSPORT_MARGIN_SECONDS: Final[float] = 5.0
    _AUTH_STATUS_CODES: Final[frozenset[int]] = frozenset({401, 403})
    _RETRYABLE_STATUS_CODES: Final[frozenset[int]] = frozenset({408, 429})

    def __init__(
        self,
        base_url: str,
        token: str,
        request_timeout_seconds: float = 10.0,
        http_client: httpx.Client | None = None,
    ):
        """Initialize orchestrator gateway.

        Args:
            base_url: Orchestrator API base URL.
            token: Shared bearer credential.
            request_timeout_seconds: Transport timeout for non-poll requests.
            http_client: Optional preconfigured client, used by tests with a mock transport.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when required config values are invalid.
        """

        normalized_base_url = base_url.strip()
        normalized_token = token.strip()

        if not normalized_base_url:
            raise ValueError("base_url must not be blank")
        if not normalized_token:
            raise ValueError("token must not be blank")
        if request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be > 0")

        self._base_url = normalized_base_url.rstrip("/")
        self._request_timeout_seconds = request_timeout_seconds
        self._http_client = http_client or httpx.Client(timeout=request_timeout_seconds)
        self._request_headers = {
            "Authorization": f"Bearer {normalized_token}",
            "User-Agent": self._USER_AGENT,
            "Accept": "application/json",
        }

    def gateway_close(self) -> None:
        """Release the underlying HTTP connection pool.

        Returns:
            None: Closes the client as side effect.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        self._http_client.close()

    def gateway_register(self, hostname: str, capabilities: frozenset[str]) -> None:
        """Register worker hostname and capabilities with the orchestrator.

        Args:
            hostname: Worker instance identifier.
            capabilities: Job types this instance accepts.

        Returns:
            None: Registration has no response payload.

        Raises:
            GatewayAuthError: Raised when the credential is rejected.
            GatewayNetworkError: Raised for transient failures.
            ValueError: Raised when hostname is blank.
        """

        normalized_hostname = hostname.strip()
        if not normalized_hostname:
            raise ValueError("hostname must not be blank")

        self._gateway_http_post(
            path="/orchestrator/agents/register",
            json_body={"hostname": normalized_hostname, "capabilities": sorted(capabilities)},
        )

    def gateway_poll(self, capabilities: frozenset[str], timeout_seconds: float) -> Job | None:
        """Long-poll for one job matching the capability set.

        Args:
            capabilities: Job types this instance accepts.
            timeout_seconds: Long-poll hint forwarded to the server.

        Returns:
            Job | None: Claimed job or None when the long-poll expired empty.

        Raises:
            GatewayAuthError: Raised when the credential is rejected.
            GatewayNetworkError: Raised for transient failures.
            GatewayProtocolError: Raised when the job payload violates the wire contract.
        """

        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")

        response = self._gateway_http_post(
            path="/orchestrator/jobs/poll",
            json_body={"capabilities": sorted(capabilities), "timeoutSeconds": timeout_seconds},
            timeout_seconds=timeout_seconds + self._POLL_TRANSPORT_MARGIN_SECONDS,
        )
        if response.status_code == 204 or not response.content:
            return None

        response_payload = self._gateway_parse_json(response=response, context_label="poll")
        job_payload = response_payload.get("job") if isinstance(response_payload, dict) else None
        if job_payload is None:
            return None

        try:
            return _JobWireModel.model_validate(job_payload).wire_to_domain()
        except ValidationError as error:
            raise GatewayProtocolError(f"Orchestrator poll returned malformed job: {error}") from error

    def gateway_complete(self, job_id: str, result: Any) -> None:
        """Report job completion.

        Args:
            job_id: Claimed job identifier.
            result: JSON-serializable handler result.

        Returns:
            None: Reporting has no response payload.

        Raises:
            GatewayAuthError: Raised when the credential is rejected.
            GatewayNetworkError: Raised for transient failures.
            GatewayValidationError: Raised when the orchestrator rejects the report.
        """

        self._gateway_http_post(
            path=f"/orchestrator/jobs/{self._gateway_normalize_job_id(job_id)}/complete",
            json_body={"result": result},
        )

    def gateway_fail(self, job_id: str, error: JobErrorSummary) -> None:
        """Report job failure.

        Args:
            job_id: Claimed job identifier.
            error: Serializable error summary.

        Returns:
            None: Reporting has no response payload.

        Raises:
            GatewayAuthError: Raised when the credential is rejected.
            GatewayNetworkError: Raised for transient failures.
            GatewayValidationError: Raised when the orchestrator rejects the report.
        """

        self._gateway_http_post(
            path=f"/orchestrator/jobs/{self._gateway_normalize_job_id(job_id)}/fail",
            json_body={"error": error.summary_to_payload()},
        )

    def gateway_update_progress(self, job_id: str, fraction: float, message: str | None = None) -> None:
        """Publish job progress.

        Args:
            job_id: Claimed job identifier.
            fraction: Progress fraction in [0, 1].
            message: Optional progress message.

        Returns:
            None: Progress updates have no response payload.

        Raises:
            GatewayAuthError: Raised when the credential is rejected.
            GatewayNetworkError: Raised for transient failures.
        """

        self._gateway_http_post(
            path=f"/orchestrator/jobs/{self._gateway_normalize_job_id(job_id)}/progress",
            json_body={"progress": fraction, "message": message},
        )

    def gateway_create_child_job(self, request: ChildJobRequest) -> str:
        """Create a child job and return its identifier.

        Args:
            request: Child job request contract.

        Returns:
            str: Created job identifier.

        Raises:
            GatewayValidationError: Raised when the orchestrator rejects the request.
            GatewayAuthError: Raised when the credential is rejected.
            GatewayNetworkError: Raised for transient failures.
            GatewayProtocolError: Raised when the response lacks a job id.
        """

        response = self._gateway_http_post(
            path="/orchestrator/jobs",
            json_body={"type": request.type, "payload": request.payload, "parentJobId": request.parent_job_id},
        )
        response_payload = self._gateway_parse_json(response=response, context_label="create_child_job")
        created_job_id = str(response_payload.get("id") or "").strip() if isinstance(response_payload, dict) else ""
        if not created_job_id:
            raise GatewayProtocolError("Orchestrator create-job response missing id")
        return created_job_id

    def _gateway_http_post(
        self,
        path: str,
        json_body: dict[str, Any],
        timeout_seconds: float | None = None,
    ) -> httpx.Response:
        """Execute one authenticated POST and map failures to typed gateway errors.

        Args:
            path: API path relative to the base URL.
            json_body: JSON request body.
            timeout_seconds: Optional per-request timeout override.

        Returns:
            httpx.Response: Successful (2xx) response.

        Raises:
            GatewayAuthError: Raised for `401`/`403`.
            GatewayTimeoutError: Raised for transport timeouts.
            GatewayNetworkError: Raised for transport failures, `408`, `429` and `5xx`.
            GatewayValidationError: Raised for remaining `4xx` statuses and unserializable bodies.
        """

        try:
            encoded_body = domain_to_json_compatible(json_body)
        except ResultSerializationError as error:
            raise GatewayValidationError(
                f"Orchestrator request body is not JSON serializable: path={path} {error}"
            ) from error

        try:
            response = self._http_client.post(
                f"{self._base_url}{path}",
                json=encoded_body,
                headers=self._request_headers,
                timeout=timeout_seconds or self._request_timeout_seconds,
            )
        except httpx.TimeoutException as error:
            raise GatewayTimeoutError(f"Orchestrator request timed out: path={path}") from error
        except httpx.TransportError as error:
            raise GatewayNetworkError(f"Orchestrator transport request failed: path={path}") from error

        status_code = response.status_code
        if status_code in self._AUTH_STATUS_CODES:
            raise GatewayAuthError(
                f"Orchestrator rejected credential: HTTP {status_code} path={path}",
                status_code=status_code,
            )
        if status_code in self._RETRYABLE_STATUS_CODES or status_code >= 500:
            raise GatewayNetworkError(
                f"Orchestrator unavailable: HTTP {status_code} path={path}",
                status_code=status_code,
            )
        if status_code >= 400:
            raise GatewayValidationError(
                f"Orchestrator rejected request: HTTP {status_code} path={path} body={response.text[:500]}",
                status_code=status_code,
            )
        return response

    def _gateway_parse_json(self, response: httpx.Response, context_label: str) -> Any:
        """Parse response JSON and raise deterministic protocol errors.

        Args:
            response: Successful HTTP response.
            context_label: Context label for error messages.

        Returns:
            Any: Decoded JSON document.

        Raises:
            GatewayProtocolError: Raised when body is not valid JSON.
        """

        try:
            return response.json()
        except ValueError as error:
            raise GatewayProtocolError(f"Orchestrator JSON parse failed for context={context_label}") from error

    def _gateway_normalize_job_id(self, job_id: str) -> str:
        normalized_job_id = job_id.strip()
        if not normalized_job_id:
            raise ValueError("job_id must not be blank")
        return normalized_job_id
