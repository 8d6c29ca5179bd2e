"""Plant photo analysis through the Anthropic Messages API."""

import logging
from typing import Any, Dict, Optional

import httpx

from growlog.config.settings import Settings
from growlog.core.exceptions import PhotoAnalysisError
from growlog.modules.photo_analysis.schemas import AnalyzePlantPhotoInput, AnalyzePlantPhotoOutput, split_data_uri

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert in cannabis plant health. "
    "You will analyze the provided photo of a plant and give a brief description "
    "of potential problems or observations. Focus on visual signs of disease, "
    "nutrient deficiencies or other issues."
)


class PhotoAnalysisService:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport

    def build_request_body(self, payload: AnalyzePlantPhotoInput) -> Dict[str, Any]:
        mime_type, data = split_data_uri(payload.photo_data_uri)
        return {
            "model": self.settings.photo_analysis_model,
            "max_tokens": self.settings.photo_analysis_max_tokens,
            "system": SYSTEM_PROMPT,
            "messages": [{
                "role": "user",
                "content": [
                    {"type": "image", "source": {"type": "base64", "media_type": mime_type, "data": data}},
                    {"type": "text", "text": "Analyze this plant photo."},
                ],
            }],
        }

    async def analyze_plant_photo(self, payload: AnalyzePlantPhotoInput) -> AnalyzePlantPhotoOutput:
        if not self.settings.photo_analysis_api_key:
            raise PhotoAnalysisError("Photo analysis is not configured")

        headers = {
            "x-api-key": self.settings.photo_analysis_api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }
        body = self.build_request_body(payload)

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.photo_analysis_timeout_seconds,
                transport=self.transport,
            ) as client:
                response = await client.post(self.settings.photo_analysis_base_url, headers=headers, json=body)
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Photo analysis request failed: {e}")
            raise PhotoAnalysisError(f"Photo analysis request failed: {e}") from e
        except ValueError as e:
            raise PhotoAnalysisError("Photo analysis returned invalid JSON") from e

        content = result.get("content") if isinstance(result, dict) else None
        if not isinstance(content, list) or not content:
            raise PhotoAnalysisError("Photo analysis returned no content")
        text = "".join(
            str(block.get("text") or "")
            for block in content
            if isinstance(block, dict) and block.get("type") == "text"
        ).strip()
        if not text:
            raise PhotoAnalysisError("Photo analysis returned an empty result")
        return AnalyzePlantPhotoOutput(analysis_result=text)
