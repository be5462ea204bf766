# core/openai_client.py
from typing import Any, Dict, Optional
import httpx
from config.languages import LanguageConfig
from config.settings import settings
from util.constants import ExternalURIs
from util.errors import ProviderError, ProviderNotConfigured
from util.functions import format_prompt
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """
    Explanation + speech provider backed by the OpenAI REST API.

    Both calls raise ProviderError on any transport, status or payload problem
    so the runner can record a single message per failed item.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        api_url: Optional[str] = None,
        chat_model: Optional[str] = None,
        tts_model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self._api_url = (api_url or settings.OPENAI_API_URL).rstrip("/")
        self._chat_model = chat_model or settings.OPENAI_CHAT_MODEL
        self._tts_model = tts_model or settings.OPENAI_TTS_MODEL
        self._timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS
        self._transport = transport

    def ensure_configured(self) -> None:
        if not self._api_key:
            raise ProviderNotConfigured("OpenAI API key is not configured")

    def _headers(self) -> Dict[str, str]:
        return {
            "authorization": f"Bearer {self._api_key}",
            "content-type": "application/json",
        }

    async def _post(self, path: str, payload: Dict[str, Any], what: str) -> httpx.Response:
        self.ensure_configured()
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                res = await client.post(
                    self._api_url + path, headers=self._headers(), json=payload
                )
        except httpx.RequestError as e:
            logger.error("ai.%s.request_error err=%s", what, type(e).__name__)
            raise ProviderError(f"OpenAI {what} request failed: {type(e).__name__}") from e

        if res.status_code // 100 != 2:
            logger.warning("ai.%s.bad_status status=%d", what, res.status_code)
            raise ProviderError(f"OpenAI {what} failed with status {res.status_code}")
        return res

    async def explain(self, text: str, config: LanguageConfig) -> str:
        payload = {
            "model": self._chat_model,
            "messages": [
                {"role": "system", "content": config.systemPrompt},
                {
                    "role": "user",
                    "content": format_prompt(config.userPromptTemplate, text),
                },
            ],
        }
        with timed(logger, "ai.explain", lang=config.code, model=self._chat_model):
            res = await self._post(ExternalURIs.CHAT_COMPLETIONS, payload, "explain")

        content = ""
        try:
            choices = res.json().get("choices") or []
            if choices and isinstance(choices, list):
                content = (choices[0].get("message") or {}).get("content") or ""
        except ValueError:
            content = ""

        content = content.strip()
        if not content:
            raise ProviderError("OpenAI returned an empty explanation")
        return content

    async def synthesize(self, text: str, config: LanguageConfig) -> bytes:
        payload = {"model": self._tts_model, "voice": config.ttsVoice, "input": text}
        with timed(logger, "ai.synthesize", lang=config.code, voice=config.ttsVoice):
            res = await self._post(ExternalURIs.AUDIO_SPEECH, payload, "speech")
        if not res.content:
            raise ProviderError("OpenAI returned empty audio")
        logger.info("ai.synthesize.bytes lang=%s bytes=%d", config.code, len(res.content))
        return res.content
