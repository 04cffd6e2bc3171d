"""Runtime settings and scan policy."""

import os
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_IGNORED_HEADERS = [
    # C / C++ standard library
    "stdio.h", "stdlib.h", "string.h", "stdint.h", "stdbool.h", "math.h",
    "string", "vector", "map", "memory", "algorithm", "functional",
    # Core framework headers
    "Arduino.h", "Wire.h", "SPI.h", "esp_system.h", "esp_log.h",
    "freertos/FreeRTOS.h", "freertos/task.h",
]


class ScanPolicy(BaseModel):
    """Constants that shape a discovery run."""

    batch_size: int = Field(default=15, ge=1)
    max_source_chars: int = 5000
    max_license_chars: int = 5000
    source_extensions: tuple[str, ...] = (".h", ".hpp", ".c", ".cpp", ".ino")
    manifest_names: tuple[str, ...] = (
        "platformio.ini",
        "library.json",
        "makefile",
        "cmakelists.txt",
    )
    # Headers the extractor is told to treat as standard/framework, never third-party.
    ignored_headers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORED_HEADERS)
    )


class Settings(BaseModel):
    github_token: Optional[str] = None
    discovery_model: str = "gpt-4.1-mini"
    analysis_model: str = "gpt-4.1"
    request_interval: float = 0.3
    log_level: str = "WARNING"
    log_file: str = "sbom-inspector.log"
    policy: ScanPolicy = Field(default_factory=ScanPolicy)


def load_settings() -> Settings:
    """Build settings from the process environment."""
    env = os.environ
    return Settings(
        github_token=env.get("GITHUB_TOKEN") or env.get("GH_TOKEN") or None,
        discovery_model=env.get("SBOM_INSPECTOR_DISCOVERY_MODEL", "gpt-4.1-mini"),
        analysis_model=env.get("SBOM_INSPECTOR_ANALYSIS_MODEL", "gpt-4.1"),
        request_interval=float(env.get("SBOM_INSPECTOR_REQUEST_INTERVAL", "0.3")),
        log_level=env.get("SBOM_INSPECTOR_LOG_LEVEL", "WARNING").upper(),
        log_file=env.get("SBOM_INSPECTOR_LOG_FILE", "sbom-inspector.log"),
    )
