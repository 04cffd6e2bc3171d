"""Structured extraction on top of an LLM backend.

Each extraction kind has a fixed pydantic output model. A reply that does
not parse into that model comes back as an ``ExtractionFailed`` value; the
caller decides whether that is fatal.
"""

import logging
import re
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ValidationError

from sbom_inspector.llm import LLMBackend
from sbom_inspector.models import LicenseInfo, ManifestScan, RiskAssessment, SourceScan

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^\s*```[A-Za-z0-9_-]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```\s*$")


class ExtractionKind(str, Enum):
    manifest_scan = "manifest-scan"
    source_scan = "source-scan"
    license_scan = "license-scan"
    full_assessment = "full-assessment"


OUTPUT_MODELS: dict[ExtractionKind, type[BaseModel]] = {
    ExtractionKind.manifest_scan: ManifestScan,
    ExtractionKind.source_scan: SourceScan,
    ExtractionKind.license_scan: LicenseInfo,
    ExtractionKind.full_assessment: RiskAssessment,
}


class ExtractionFailed(BaseModel):
    """The service reply could not be turned into the requested model."""

    kind: ExtractionKind
    raw_text: str = ""
    reason: str = ""


ExtractionResult = Union[BaseModel, ExtractionFailed]


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence, if any."""
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE_OPEN.sub("", text, count=1)
        text = _FENCE_CLOSE.sub("", text)
    return text.strip()


class ExtractionClient:
    """One backend call per extraction, no retries."""

    def __init__(
        self,
        backend: LLMBackend,
        discovery_model: Optional[str] = None,
        analysis_model: Optional[str] = None,
    ) -> None:
        self.backend = backend
        self.discovery_model = discovery_model
        self.analysis_model = analysis_model

    def _model_for(self, kind: ExtractionKind) -> Optional[str]:
        if kind is ExtractionKind.full_assessment:
            return self.analysis_model
        return self.discovery_model

    async def extract(self, kind: ExtractionKind, prompt: str) -> ExtractionResult:
        output_model = OUTPUT_MODELS[kind]
        schema = output_model.model_json_schema(by_alias=True)
        try:
            raw = await self.backend.generate(prompt, schema, self._model_for(kind))
        except Exception as e:
            logger.warning("Extraction call %s failed: %s", kind.value, e)
            return ExtractionFailed(kind=kind, reason=f"backend error: {e}")

        text = strip_code_fences(raw or "")
        try:
            return output_model.model_validate_json(text)
        except ValidationError as e:
            logger.warning(
                "Unparsable %s output (%d chars): %s",
                kind.value, len(text), e.errors()[0]["msg"] if e.errors() else e,
            )
            return ExtractionFailed(kind=kind, raw_text=raw or "", reason=str(e))
