"""Normalization helpers shared by dedup, correlation and compliance mapping."""

from __future__ import annotations

import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WORD = re.compile(r"[a-z0-9]+")

# Analyzer spellings that name the same category.
CATEGORY_ALIASES: dict[str, str] = {
    "sqli": "sql_injection",
    "sql": "sql_injection",
    "cross_site_scripting": "xss",
    "stored_xss": "xss",
    "reflected_xss": "xss",
    "dom_xss": "xss",
    "cross_site_request_forgery": "csrf",
    "server_side_request_forgery": "ssrf",
    "hardcoded_secrets": "hardcoded_secret",
    "hardcoded_credentials": "hardcoded_secret",
    "hardcoded_credential": "hardcoded_secret",
    "secret_in_code": "hardcoded_secret",
    "insecure_direct_object_reference": "idor",
    "rce": "remote_code_execution",
    "command_execution": "command_injection",
    "os_command_injection": "command_injection",
    "llm_prompt_injection": "prompt_injection",
    "indirect_prompt_injection": "prompt_injection",
    "vulnerable_dependencies": "vulnerable_dependency",
    "outdated_dependency": "vulnerable_dependency",
    "known_vulnerability": "vulnerable_dependency",
    "session_fixation": "session_management",
    "insecure_session": "session_management",
    "token_leakage": "token_exposure",
    "jwt_misconfiguration": "weak_token_validation",
    "iam_overprivileged": "overly_permissive_iam",
    "excessive_permissions": "overly_permissive_iam",
    "cloud_metadata_exposure": "metadata_exposure",
    "imds_exposure": "metadata_exposure",
    "pii_leak": "pii_exposure",
    "sensitive_data_exposure": "data_exposure",
}

_STOPWORDS = frozenset(
    {
        "this", "that", "with", "from", "which", "when", "where", "there",
        "their", "have", "been", "were", "will", "would", "could", "should",
        "into", "than", "then", "them", "they", "these", "those", "also",
        "such", "does", "other", "about", "without", "using", "used", "uses",
        "file", "line", "code", "found", "allows", "allow", "value", "values",
        "application", "app", "issue", "finding", "potential", "possible",
        "user", "users", "input", "data", "request", "package", "known",
        "vulnerability", "vulnerable", "version", "affected", "security",
    }
)


def normalize_category(category: str) -> str:
    """Lowercase, underscore-separate and resolve known aliases."""
    slug = _NON_ALNUM.sub("_", category.strip().lower()).strip("_")
    return CATEGORY_ALIASES.get(slug, slug)


def normalize_path(path: str) -> str:
    normalized = path.strip().replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return re.sub(r"/{2,}", "/", normalized)


def keyword_signature(*texts: str) -> frozenset[str]:
    """Distinctive words across ``texts``.

    Words shorter than four characters, stopwords and bare numbers (CVE years
    and sequence numbers) are left out.
    """
    words: set[str] = set()
    for text in texts:
        for word in _WORD.findall(text.lower()):
            if len(word) >= 4 and not word.isdigit() and word not in _STOPWORDS:
                words.add(word)
    return frozenset(words)
