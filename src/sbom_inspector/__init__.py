"""SBOM Inspector — dependency discovery and risk profiling for firmware repos.

Scans a GitHub repository's build manifests, sources and license file to
find third-party components, then produces an LLM-graded risk assessment
for each one.
"""

__version__ = "0.1.0"
