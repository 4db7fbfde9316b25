import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

MAX_LENGTH = 1000
TEMPERATURE = 0.7


class InferenceClientError(Exception):
    """Raised when the text-generation endpoint returns nothing usable."""


def _from_list(data: Any) -> Optional[str]:
    if isinstance(data, list) and data:
        first = data[0]
        if isinstance(first, dict) and isinstance(first.get("generated_text"), str):
            return first["generated_text"]
        if isinstance(first, str):
            return first
    return None


def _from_object(data: Any) -> Optional[str]:
    if isinstance(data, dict) and isinstance(data.get("generated_text"), str):
        return data["generated_text"]
    return None


def _from_chat_completion(data: Any) -> Optional[str]:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) else None


def _from_raw_string(data: Any) -> Optional[str]:
    return data if isinstance(data, str) else None


# Checked in order; the first shape that yields text wins.
RESPONSE_SHAPES: tuple[Callable[[Any], Optional[str]], ...] = (
    _from_list,
    _from_object,
    _from_chat_completion,
    _from_raw_string,
)


def extract_generated_text(data: Any) -> Optional[str]:
    for shape in RESPONSE_SHAPES:
        text = shape(data)
        if text is not None:
            return text
    return None


@dataclass
class InferenceClient:
    url: str
    api_key: Optional[str] = None
    timeout_seconds: Optional[float] = None

    def __post_init__(self):
        self.logger = logging.getLogger(__name__)

    def generate(self, prompt: str) -> str:
        """
        Single POST to the text-generation endpoint; no retry.
        """
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        payload: Dict[str, Any] = {
            "inputs": prompt,
            "parameters": {"max_length": MAX_LENGTH, "temperature": TEMPERATURE},
        }

        try:
            resp = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout_seconds)
        except Exception as exc:  # noqa: BLE001
            raise InferenceClientError(f"Inference request failed: {exc}") from exc

        if resp.status_code >= 300:
            raise InferenceClientError(f"Inference API error status={resp.status_code} body={resp.text[:500]}")

        try:
            data = resp.json()
        except Exception as exc:  # noqa: BLE001
            raise InferenceClientError(f"Inference response is not JSON: {resp.text[:200]}") from exc

        text = extract_generated_text(data)
        if text is None:
            raise InferenceClientError(f"Unrecognized inference response shape: {str(data)[:200]}")

        self.logger.debug("inference response received", extra={"chars": len(text)})
        return text
