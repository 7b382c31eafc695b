"""
Extraction Oracle Client

Sends composed contexts to the external reasoning service (Gemini, driven
through langchain) and returns its raw text.

Text requests go straight to the chat model. Media requests run the Files
API protocol first:
1. start a resumable upload session and receive an upload URL
2. transfer the bytes and finalize, receiving the file handle
3. poll the handle until it is ACTIVE (or FAILED / out of attempts)
then generate with the handle attached and delete the file best-effort.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from langchain.chat_models import init_chat_model
from langchain_core.messages import HumanMessage

from calsnap.constants import ORACLE_SETTINGS
from calsnap.errors import (
    GenerationError,
    MediaProcessingError,
    MediaProcessingTimeout,
    UploadInitError,
    UploadTransferError,
)
from calsnap.oracle.polling import MediaPoller, PollState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaUpload:
    """Binary media to be attached to an oracle request."""
    data: bytes
    mime_type: str
    file_name: str
    category: str


class OracleClient(ABC):
    """Interface the pipeline depends on. Constructed once per process."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Return the oracle's raw text for a text-only prompt."""

    @abstractmethod
    async def complete_with_media(self, prompt: str, media: MediaUpload) -> str:
        """Return the oracle's raw text for a prompt with attached media."""

    def describe(self) -> Dict[str, str]:
        return {"client": type(self).__name__}

    async def aclose(self) -> None:
        return None


def response_text(response: Any) -> str:
    """Flatten a chat model response (string or content-part list) into text."""
    content = getattr(response, "content", response)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return str(content)


class GeminiOracleClient(OracleClient):
    """
    Gemini implementation of the OracleClient interface.

    Chat models are built with langchain's init_chat_model; the Files API
    upload protocol is spoken directly over httpx.
    """

    def __init__(
        self,
        api_key: str = ORACLE_SETTINGS.API_KEY,
        model: str = ORACLE_SETTINGS.MODEL,
        media_model: str = ORACLE_SETTINGS.MEDIA_MODEL,
        provider: str = ORACLE_SETTINGS.PROVIDER,
        api_root: str = ORACLE_SETTINGS.API_ROOT,
        http_client: Optional[httpx.AsyncClient] = None,
        chat_model: Any = None,
        media_chat_model: Any = None,
        sleep=asyncio.sleep,
    ):
        """
        Initialize the Gemini oracle client.

        Args:
            api_key: Gemini API key
            model: Model used for text prompts
            media_model: Model used for prompts with attached media
            provider: langchain model provider
            api_root: Base URL of the Gemini REST API
            http_client: Optional preconfigured httpx client for the Files API
            chat_model: Optional prebuilt chat model for text prompts
            media_chat_model: Optional prebuilt chat model for media prompts
            sleep: Coroutine used between status polls
        """
        self.api_key = api_key
        self.model_name = model
        self.media_model_name = media_model
        self.api_root = api_root.rstrip("/")
        self.http_client = http_client or httpx.AsyncClient(timeout=ORACLE_SETTINGS.TIMEOUT_SECONDS)
        self.chat_model = chat_model or init_chat_model(
            model=model,
            model_provider=provider,
            temperature=ORACLE_SETTINGS.TEMPERATURE,
            api_key=api_key,
        )
        if media_chat_model is not None:
            self.media_chat_model = media_chat_model
        elif media_model == model:
            self.media_chat_model = self.chat_model
        else:
            self.media_chat_model = init_chat_model(
                model=media_model,
                model_provider=provider,
                temperature=ORACLE_SETTINGS.TEMPERATURE,
                api_key=api_key,
            )
        self.sleep = sleep

    def describe(self) -> Dict[str, str]:
        return {
            "client": "gemini",
            "model": self.model_name,
            "media_model": self.media_model_name,
            "api_key": "configured" if self.api_key else "missing",
        }

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def complete(self, prompt: str) -> str:
        return await self._generate(self.chat_model, [HumanMessage(content=prompt)])

    async def complete_with_media(self, prompt: str, media: MediaUpload) -> str:
        logger.info(
            "Uploading %s (%s, %d bytes) to the Files API",
            media.file_name, media.mime_type, len(media.data),
        )
        upload_url = await self._start_upload(media)
        uploaded = await self._transfer(upload_url, media)
        file_name = uploaded["name"]

        try:
            poller = MediaPoller(
                max_attempts=ORACLE_SETTINGS.POLL_MAX_ATTEMPTS.get(media.category, 30),
                sleep=self.sleep,
            )
            state = await poller.wait(lambda: self._file_state(file_name))
            if state is PollState.FAILED:
                raise MediaProcessingError(f"File processing failed for {media.file_name}")
            if state is PollState.TIMED_OUT:
                raise MediaProcessingTimeout(
                    f"File processing timeout - {media.file_name} not ready after {poller.max_attempts} attempts"
                )

            message = HumanMessage(content=[
                {"type": "text", "text": prompt},
                {"type": "media", "file_uri": uploaded["uri"], "mime_type": media.mime_type},
            ])
            return await self._generate(self.media_chat_model, [message])
        finally:
            await self._delete_file(file_name)

    async def _generate(self, model: Any, messages: List[HumanMessage]) -> str:
        try:
            response = await model.ainvoke(messages)
        except Exception as e:
            raise GenerationError(f"Content generation failed: {e}") from e

        text = response_text(response)
        logger.info("Oracle responded with %d characters: %s", len(text), text[:200])
        return text

    def _headers(self, **extra: str) -> Dict[str, str]:
        return {"x-goog-api-key": self.api_key, **extra}

    async def _start_upload(self, media: MediaUpload) -> str:
        headers = self._headers(**{
            "X-Goog-Upload-Protocol": "resumable",
            "X-Goog-Upload-Command": "start",
            "X-Goog-Upload-Header-Content-Length": str(len(media.data)),
            "X-Goog-Upload-Header-Content-Type": media.mime_type,
            "Content-Type": "application/json",
        })
        try:
            response = await self.http_client.post(
                f"{self.api_root}/upload/v1beta/files",
                headers=headers,
                json={"file": {"display_name": media.file_name or "uploaded-file"}},
            )
        except httpx.HTTPError as e:
            raise UploadInitError(f"Upload initialization failed: {e}") from e

        if not response.is_success:
            raise UploadInitError(f"Upload initialization failed: {response.status_code} - {response.text}")

        upload_url = response.headers.get("x-goog-upload-url")
        if not upload_url:
            raise UploadInitError("No upload URL received from Gemini API")
        return upload_url

    async def _transfer(self, upload_url: str, media: MediaUpload) -> Dict[str, Any]:
        headers = self._headers(**{
            "X-Goog-Upload-Offset": "0",
            "X-Goog-Upload-Command": "upload, finalize",
        })
        try:
            response = await self.http_client.post(upload_url, headers=headers, content=media.data)
        except httpx.HTTPError as e:
            raise UploadTransferError(f"File upload failed: {e}") from e

        if not response.is_success:
            raise UploadTransferError(f"File upload failed: {response.status_code} - {response.text}")

        try:
            uploaded = response.json().get("file") or {}
        except ValueError as e:
            raise UploadTransferError("Upload response was not JSON") from e
        if not uploaded.get("name") or not uploaded.get("uri"):
            raise UploadTransferError("Upload response missing file name/uri")

        logger.info("File uploaded successfully: %s", uploaded["name"])
        return uploaded

    async def _file_state(self, file_name: str) -> Optional[str]:
        try:
            response = await self.http_client.get(f"{self.api_root}/v1beta/{file_name}", headers=self._headers())
        except httpx.HTTPError as e:
            logger.warning("Status check for %s failed: %s", file_name, e)
            return None
        if not response.is_success:
            logger.warning("Status check for %s failed: %s", file_name, response.status_code)
            return None
        try:
            return response.json().get("state")
        except ValueError:
            logger.warning("Status check for %s returned a non-JSON body", file_name)
            return None

    async def _delete_file(self, file_name: str) -> None:
        try:
            response = await self.http_client.delete(f"{self.api_root}/v1beta/{file_name}", headers=self._headers())
            if response.is_success:
                logger.info("File %s cleaned up successfully", file_name)
            else:
                logger.warning("File cleanup for %s failed with %s, continuing", file_name, response.status_code)
        except httpx.HTTPError as e:
            logger.warning("File cleanup error for %s: %s", file_name, e)
