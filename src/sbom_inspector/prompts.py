"""Prompt builders for the extraction calls."""

from typing import Iterable

from sbom_inspector.config import ScanPolicy


def manifest_prompt(manifests: list[tuple[str, str]]) -> str:
    files_text = "\n\n".join(f"--- {path} ---\n{content}" for path, content in manifests)
    return (
        "You are a build system expert. Based on the following manifest file(s), identify:\n"
        '1. The toolchain and framework (e.g. "PlatformIO with Arduino framework for ESP32").\n'
        "2. All external library dependencies, with their common name and a source URL.\n\n"
        f"File Contents:\n{files_text}\n\n"
        'Return a single JSON object with "toolchainInfo" (a string) and "dependencies" '
        '(an array of objects with "name" and "url").'
    )


def source_batch_prompt(
    files: list[tuple[str, str]],
    known_names: Iterable[str],
    policy: ScanPolicy,
) -> str:
    files_text = "\n\n".join(
        f"--- START FILE: {path} ---\n{content[:policy.max_source_chars]}\n--- END FILE: {path} ---"
        for path, content in files
    )
    known = ", ".join(known_names) or "(none)"
    ignored = ", ".join(policy.ignored_headers)
    return (
        "You are a C/C++ expert analyzing source code for dependencies.\n"
        "Based on the text of the following source files, identify external libraries "
        "from their #include directives.\n\n"
        "- IGNORE standard library headers (e.g. <string>, <vector>, <stdio.h>).\n"
        f"- IGNORE core framework headers, including: {ignored}.\n"
        '- IGNORE includes that are local to the project (e.g. #include "my_local_header.h").\n'
        "- FOCUS on distinct third-party libraries, reported by library name.\n"
        f"- Already found dependencies: {known}. Do not report these again.\n\n"
        f"File Contents:\n{files_text}\n\n"
        'Return a single JSON object with a "dependencies" array. For each dependency give '
        'its "name" and a probable source "url"; use a placeholder URL if none is known.'
    )


def license_prompt(license_text: str, policy: ScanPolicy) -> str:
    return (
        "Analyze the following license text, identify its SPDX identifier "
        '(or "Proprietary" / "Unknown") and summarize its compliance risks.\n\n'
        f"License Text:\n{license_text[:policy.max_license_chars]}\n\n"
        'Return a single JSON object with "spdxId" and "complianceSummary".'
    )


def assessment_prompt(name: str, url: str, compilation_date: str) -> str:
    return (
        f'You are an expert cybersecurity and compliance analyst reviewing the software '
        f'library "{name}" from: {url}.\n'
        f"The product using this was compiled around: {compilation_date}.\n\n"
        "Perform a detailed risk assessment.\n"
        "1. Maintainer Analysis: analyze the maintainers and their reputation.\n"
        "2. Code Security Analysis: briefly analyze the code for inherent security risks.\n"
        "3. License Analysis: identify the software license from source headers and "
        "license files (LICENSE, COPYING). Give the SPDX identifier and summarize "
        "compliance risks such as copyleft obligations or patent clauses.\n"
        "4. Vulnerability Analysis (CWE mapping):\n"
        f'   - Find all relevant CVEs for "{name}" disclosed after {compilation_date}.\n'
        "   - Map each CVE to its MITRE CWE ID (e.g. CWE-120), picking the most specific one.\n"
        "   - Group the CVEs under their parent CWE and give a risk summary per CWE.\n"
        '   - If no relevant CVEs are found, return an empty "vulnerabilityAnalysis" array.\n'
        '5. Overall Risk: a risk level ("Low", "Medium", "High", "Critical") and a '
        "one-sentence summary based on all factors.\n\n"
        "Return a single, valid JSON object matching the provided schema."
    )
