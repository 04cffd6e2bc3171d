"""Data models for sbom-inspector."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

TOOLCHAIN_UNKNOWN = "Not determined."


class _ServiceModel(BaseModel):
    """Base for models exchanged with the reasoning service (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Enums ──────────────────────────────────────────────────────────────────

class DiscoverySource(str, Enum):
    """Which discovery phase first reported a dependency."""

    build_manifest = "Build Manifest"
    source_scan = "Source Code Scan"
    root_repository = "Root Repository"


class RiskLevel(str, Enum):
    low = "Low"
    medium = "Medium"
    high = "High"
    critical = "Critical"


# ── Discovery ──────────────────────────────────────────────────────────────

class DependencyRecord(_ServiceModel):
    """A dependency reported by one of the discovery phases."""

    name: str
    source_url: str = ""
    discovery_source: DiscoverySource

    @property
    def key(self) -> str:
        """Identity key: case-insensitive, trimmed name."""
        return self.name.strip().lower()


class ExtractedDependency(_ServiceModel):
    """A dependency as returned by the extraction service (no provenance yet)."""

    name: str
    url: str = ""

    def to_record(self, source: DiscoverySource) -> DependencyRecord:
        return DependencyRecord(
            name=self.name.strip(), source_url=self.url, discovery_source=source
        )


class ManifestScan(_ServiceModel):
    """Output of the build-manifest extraction call."""

    toolchain_info: str
    dependencies: list[ExtractedDependency] = Field(default_factory=list)


class SourceScan(_ServiceModel):
    """Output of a source-batch extraction call."""

    dependencies: list[ExtractedDependency] = Field(default_factory=list)


class LicenseInfo(_ServiceModel):
    spdx_id: str
    compliance_summary: str

    @field_validator("spdx_id")
    @classmethod
    def _blank_is_unknown(cls, v: str) -> str:
        return v.strip() or "Unknown"


class DiscoveryResult(BaseModel):
    """Outcome of one discovery run. Not retained between runs."""

    dependencies: list[DependencyRecord] = Field(default_factory=list)
    toolchain_info: str = TOOLCHAIN_UNKNOWN
    root_license_info: Optional[LicenseInfo] = None


# ── Risk assessment ────────────────────────────────────────────────────────

class CveInfo(_ServiceModel):
    id: str
    summary: str


class CweFinding(_ServiceModel):
    """Known CVEs grouped under their weakness category."""

    cwe_id: str
    title: str = Field(alias="cweTitle")
    risk_summary: str
    # Empty means no evidence was found, not that there is no risk.
    cves: list[CveInfo] = Field(default_factory=list)


class RiskAssessment(_ServiceModel):
    """Full risk profile for a single dependency."""

    maintainer_analysis: str
    code_security_analysis: str
    license_analysis: LicenseInfo
    vulnerability_analysis: list[CweFinding] = Field(default_factory=list)
    risk_level: RiskLevel
    risk_summary: str


# ── Tree ───────────────────────────────────────────────────────────────────

class DependencyNode(BaseModel):
    """One node of the dependency tree.

    Nodes are immutable; ``path`` and ``level`` are fixed when the node is
    built and are the only handle used to address it afterwards.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    discovery_source: DiscoverySource
    path: str
    level: int
    is_loading: bool = False
    is_expanded: bool = False
    children: tuple["DependencyNode", ...] = ()
    assessment: Optional[RiskAssessment] = None
