"""Per-dependency deep risk assessment."""

import logging
from typing import Callable, Optional

from sbom_inspector import prompts
from sbom_inspector.extraction import ExtractionClient, ExtractionFailed, ExtractionKind
from sbom_inspector.models import DependencyNode, LicenseInfo, RiskAssessment, RiskLevel

logger = logging.getLogger(__name__)


def fallback_assessment() -> RiskAssessment:
    """What a failed analysis renders as: alarming, but actionable."""
    return RiskAssessment(
        maintainer_analysis="Could not analyze maintainers.",
        code_security_analysis="Could not perform code security analysis.",
        license_analysis=LicenseInfo(
            spdx_id="Unknown",
            compliance_summary="Failed to perform AI analysis on the license.",
        ),
        vulnerability_analysis=[],
        risk_level=RiskLevel.critical,
        risk_summary="Failed to perform AI analysis. Treat with extreme caution.",
    )


class AnalysisOrchestrator:
    def __init__(self, extractor: ExtractionClient) -> None:
        self.extractor = extractor

    async def analyze(
        self,
        name: str,
        url: str,
        compilation_date: str,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> RiskAssessment:
        """Assess one dependency. Never raises on unusable service output.

        ``compilation_date`` is passed to the service as the cutoff for which
        vulnerabilities to emphasise; results are not filtered locally.
        """
        if on_status:
            on_status(f"Analyzing vulnerabilities for {name} …")
        extracted = await self.extractor.extract(
            ExtractionKind.full_assessment,
            prompts.assessment_prompt(name, url, compilation_date),
        )
        if isinstance(extracted, ExtractionFailed):
            logger.warning("Assessment of %s failed, using Critical fallback", name)
            return fallback_assessment()
        return extracted

    async def analyze_node(
        self,
        node: DependencyNode,
        compilation_date: str,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> RiskAssessment:
        return await self.analyze(node.name, node.url, compilation_date, on_status)
