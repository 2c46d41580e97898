"""
Judge0 client: runs one program synchronously and returns decoded output.
"""

import base64
import logging
from typing import Optional

import httpx

from codeclash.core import config
from codeclash.core.errors import InvalidArgument, RequestTimeout, UpstreamError

logger = logging.getLogger(__name__)

LANGUAGE_IDS = {
    "javascript": 63,
    "python": 71,
    "java": 62,
    "c": 50,
    "cpp": 54,
}

MOCK_RESULT = {
    "stdout": "",
    "stderr": "",
    "compile_output": "",
    "status": "Mock execution (judge unavailable)",
}


def resolve_language_id(language: str) -> int:
    language_id = LANGUAGE_IDS.get((language or "").strip().lower())
    if language_id is None:
        raise InvalidArgument("Invalid language")
    return language_id


def _encode(text: Optional[str]) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii") if text else ""


def _decode(value: Optional[str]) -> str:
    if not value:
        return ""
    return base64.b64decode(value).decode("utf-8", errors="replace")


class Judge0Client:
    """
    Thin wrapper over ``POST /submissions?wait=true&base64_encoded=true``.

    ``transport`` lets tests substitute an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        host: str = "",
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        mock_fallback: bool = False,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.host = host
        self.timeout = timeout
        self.transport = transport
        self.mock_fallback = mock_fallback

    @classmethod
    def from_config(cls) -> "Judge0Client":
        return cls(
            base_url=config.JUDGE0_API_URL,
            api_key=config.RAPIDAPI_KEY,
            host=config.RAPIDAPI_HOST,
            timeout=config.JUDGE0_TIMEOUT_SECONDS,
            mock_fallback=config.JUDGE0_MOCK_FALLBACK,
        )

    def _headers(self) -> dict:
        return {
            "X-RapidAPI-Key": self.api_key,
            "X-RapidAPI-Host": self.host,
            "Content-Type": "application/json",
        }

    async def run(self, code: str, language: str, stdin: Optional[str] = None) -> dict:
        """
        Execute ``code`` and wait for the verdict

        Raises:
            400: Unsupported language (no request is sent)
            408: Judge did not answer in time
            500: Any other judge failure
        """
        payload = {
            "source_code": _encode(code),
            "language_id": resolve_language_id(language),
            "stdin": _encode(stdin),
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/submissions",
                    params={"wait": "true", "base64_encoded": "true"},
                    json=payload,
                    headers=self._headers(),
                )
                response.raise_for_status()
                output = response.json()
            if not isinstance(output, dict):
                raise ValueError("Unexpected judge response shape")
            status = output.get("status") or {}
            return {
                "stdout": _decode(output.get("stdout")),
                "stderr": _decode(output.get("stderr")),
                "compile_output": _decode(output.get("compile_output")),
                "status": status.get("description", "") if isinstance(status, dict) else "",
            }
        except httpx.TimeoutException:
            logger.warning("Judge0 request timed out after %ss", self.timeout)
            if self.mock_fallback:
                return dict(MOCK_RESULT)
            raise RequestTimeout("Code execution timed out")
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Judge0 request failed: %s", e)
            if self.mock_fallback:
                return dict(MOCK_RESULT)
            raise UpstreamError("Something went wrong")
