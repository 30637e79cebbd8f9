import json
import re
import requests
from typing import Dict, Any, Optional
from common.logger import logger
from common.config.settings import get_settings
from common.monitoring.metrics import LLM_REQUESTS

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


def parse_json_content(content: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Parse the JSON object out of a chat completion's message content.

    Models sometimes wrap the object in a Markdown code fence or add a sentence
    around it, so the outermost {...} span is tried when a plain parse fails.
    Returns None when no JSON object can be recovered.
    """
    if not isinstance(content, str):
        return None

    text = _CODE_FENCE.sub("", content.strip())
    if not text:
        return None

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            return None
        try:
            parsed = json.loads(text[start:end + 1])
        except json.JSONDecodeError:
            return None

    return parsed if isinstance(parsed, dict) else None


class LLMClient:
    """
    A client for OpenAI-compatible chat-completion APIs (OpenRouter by default)
    that asks for, and parses, JSON-object answers.
    """
    def __init__(self, api_key: Optional[str] = None, api_url: Optional[str] = None,
                 model: Optional[str] = None, vision_model: Optional[str] = None,
                 timeout: Optional[float] = None):
        settings = get_settings()
        self.api_key = api_key or settings.llm_api_key
        self.api_url = api_url or settings.llm_api_url
        self.model = model or settings.llm_model
        self.vision_model = vision_model or settings.llm_vision_model
        self.timeout = timeout or settings.llm_timeout_seconds

        if not self.api_key or not self.api_url:
            raise ValueError("LLM API Key and URL must be set in environment variables.")

        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    def _build_payload(self, prompt: str, image_data_uri: Optional[str] = None) -> Dict[str, Any]:
        if image_data_uri:
            content = [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": image_data_uri}},
            ]
            model = self.vision_model
        else:
            content = prompt
            model = self.model

        return {
            "model": model,
            "messages": [{"role": "user", "content": content}],
            "response_format": {"type": "json_object"},
        }

    def complete_json(self, prompt: str, image_data_uri: Optional[str] = None,
                      flow: str = "default") -> Optional[Dict[str, Any]]:
        """
        Sends a prompt (and optionally an image) to the LLM and returns its JSON answer.

        Args:
            prompt: The full instruction text.
            image_data_uri: A 'data:<mimetype>;base64,<data>' URI to attach.
            flow: Label used for logging and metrics.

        Returns:
            The parsed JSON object, or None if the call failed or the answer
            was not a JSON object.
        """
        payload = self._build_payload(prompt, image_data_uri)

        try:
            logger.info(f"Sending '{flow}' request to LLM model {payload['model']}.")
            response = requests.post(self.api_url, headers=self.headers, json=payload, timeout=self.timeout)
            response.raise_for_status()  # Raises an HTTPError for bad responses (4xx or 5xx)

            result = response.json()
            content = result['choices'][0]['message']['content']
        except requests.exceptions.RequestException as e:
            logger.error(f"Error calling LLM API for '{flow}': {e}")
            LLM_REQUESTS.labels(flow=flow, outcome="transport_error").inc()
            return None
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Error parsing LLM API response for '{flow}': {e}")
            LLM_REQUESTS.labels(flow=flow, outcome="bad_envelope").inc()
            return None

        parsed = parse_json_content(content)
        if parsed is None:
            logger.warning(f"LLM answer for '{flow}' did not contain a JSON object.")
            LLM_REQUESTS.labels(flow=flow, outcome="unparseable").inc()
            return None

        logger.info(f"Successfully received '{flow}' response from LLM.")
        LLM_REQUESTS.labels(flow=flow, outcome="ok").inc()
        return parsed
