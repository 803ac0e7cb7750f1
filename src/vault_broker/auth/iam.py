"""
AWS IAM auth method.

Signs an STS GetCallerIdentity request with SigV4 and hands the signed
request to Vault, which replays it against STS to verify the caller.

Vault-side setup:

    vault write auth/aws/config/client iam_server_id_header_value=$VAULT_ADDR
    vault write auth/aws/role/my-iam-role auth_type=iam \\
        bound_iam_principal_arn=arn:aws:iam::123456789012:role/app max_ttl=500h

Client-side:

    auth = IAMAuth(api, IAMAuthConfig(
        role="my-iam-role",
        iam_server_id_header_value="https://vault.example.com",  # optional
        namespace="team-a",                                      # optional
        credentials={                                            # optional
            "access_key_id": "...",
            "secret_access_key": "...",
        },
    ))
"""

import asyncio
import base64
import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import botocore.session
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

from vault_broker.auth.base import AuthStrategy
from vault_broker.auth.token import Token
from vault_broker.common.exceptions import AuthenticationError
from vault_broker.config import AUTH_TYPE_IAM, DEFAULT_MOUNTS, AWSCredentials, IAMAuthConfig
from vault_broker.protocols import Transport

STS_REQUEST_BODY = "Action=GetCallerIdentity&Version=2011-06-15"
STS_GLOBAL_HOST = "sts.amazonaws.com"
STS_GLOBAL_REGION = "us-east-1"
SERVER_ID_HEADER = "X-Vault-AWS-IAM-Server-ID"

CredentialSupplier = Callable[
    [], Union[Optional[AWSCredentials], Awaitable[Optional[AWSCredentials]]]
]


def default_credential_supplier() -> Optional[AWSCredentials]:
    """
    Resolve credentials from the botocore provider chain.

    Covers environment variables, shared config/profile files, container
    credentials and instance metadata.
    """
    credentials = botocore.session.get_session().get_credentials()
    if credentials is None:
        return None
    frozen = credentials.get_frozen_credentials()
    return AWSCredentials(
        access_key_id=frozen.access_key,
        secret_access_key=frozen.secret_key,
        session_token=frozen.token,
    )


def headers_like_golang(headers: Dict[str, Any]) -> Dict[str, list]:
    """Vault decodes headers as Go's http.Header: name -> list of values."""
    return {name: [str(value)] for name, value in headers.items()}


def b64encode(value: Union[str, bytes]) -> str:
    if isinstance(value, str):
        value = value.encode("utf-8")
    return base64.b64encode(value).decode("ascii")


class IAMAuth(AuthStrategy):
    """
    Logs in with a SigV4-signed STS GetCallerIdentity request.

    Args:
        api: Transport used for the login request
        config: IAM auth configuration
        mount: Auth backend mount (default: "aws")
        credential_supplier: Returns AWS credentials, sync or async. Defaults
            to explicit config credentials, else the botocore provider chain.
            Sync suppliers run in a worker thread.
        clock: Returns the current UTC time
    """

    auth_method = AUTH_TYPE_IAM

    def __init__(
        self,
        api: Transport,
        config: IAMAuthConfig,
        mount: Optional[str] = None,
        credential_supplier: Optional[CredentialSupplier] = None,
        clock: Optional[Callable[[], Any]] = None,
    ):
        self._config = config

        if credential_supplier is not None:
            self._credential_supplier = credential_supplier
        elif config.credentials is not None:
            explicit = config.credentials
            self._credential_supplier = lambda: explicit
        else:
            self._credential_supplier = default_credential_supplier

        super().__init__(api, mount or DEFAULT_MOUNTS[AUTH_TYPE_IAM], clock)

    @property
    def role(self) -> str:
        return self._config.role

    @property
    def region(self) -> str:
        return self._config.region or STS_GLOBAL_REGION

    @property
    def sts_host(self) -> str:
        if self._config.region:
            return f"sts.{self._config.region}.amazonaws.com"
        return STS_GLOBAL_HOST

    async def _get_credentials(self) -> AWSCredentials:
        if inspect.iscoroutinefunction(self._credential_supplier):
            credentials = await self._credential_supplier()
        else:
            # botocore's provider chain does blocking metadata lookups
            credentials = await asyncio.to_thread(self._credential_supplier)
            if inspect.isawaitable(credentials):
                credentials = await credentials
        if credentials is None:
            raise AuthenticationError(
                "No AWS credentials found in config or the default provider chain",
                context={"auth_method": self.auth_method, "role": self.role},
            )
        return AWSCredentials.from_mapping(credentials)

    def sign_sts_request(self, credentials: AWSCredentials) -> AWSRequest:
        """Build and SigV4-sign the STS GetCallerIdentity request."""
        headers = {
            "Content-Type": "application/x-www-form-urlencoded; charset=utf-8",
            "Host": self.sts_host,
        }
        if self._config.iam_server_id_header_value:
            headers[SERVER_ID_HEADER] = self._config.iam_server_id_header_value

        request = AWSRequest(
            method="POST",
            url=f"https://{self.sts_host}/",
            data=STS_REQUEST_BODY,
            headers=headers,
        )
        signer = SigV4Auth(
            Credentials(
                credentials.access_key_id,
                credentials.secret_access_key,
                credentials.session_token,
            ),
            "sts",
            self.region,
        )
        signer.add_auth(request)
        return request

    def build_login_body(self, request: AWSRequest) -> Dict[str, str]:
        """Encode a signed STS request into Vault's IAM login payload."""
        body = request.data or ""
        return {
            "iam_http_request_method": request.method,
            "iam_request_headers": b64encode(
                json.dumps(headers_like_golang(dict(request.headers.items())))
            ),
            "iam_request_body": b64encode(body),
            "iam_request_url": b64encode(request.url),
            "role": self.role,
        }

    async def authenticate(self) -> Token:
        self._log(logging.INFO, "Making authentication request", role=self.role)

        credentials = await self._get_credentials()
        signed = self.sign_sts_request(credentials)
        return await self._login(self.build_login_body(signed), self._config.namespace)
