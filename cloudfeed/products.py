"""Lookup of Google Cloud product names mentioned in free text."""
from __future__ import annotations

import re
from typing import Dict, List, Pattern, Sequence, Tuple

# canonical name -> aliases matched case-insensitively
_PRODUCTS: Dict[str, Sequence[str]] = {
    "Compute Engine": ("compute engine",),
    "GKE": ("google kubernetes engine", "kubernetes engine"),
    "Cloud Run": ("cloud run",),
    "Cloud Functions": ("cloud functions", "cloud run functions"),
    "App Engine": ("app engine",),
    "Cloud Storage": ("cloud storage",),
    "BigQuery": ("bigquery",),
    "Cloud SQL": ("cloud sql",),
    "Spanner": ("cloud spanner", "spanner"),
    "Bigtable": ("cloud bigtable", "bigtable"),
    "Firestore": ("firestore",),
    "AlloyDB": ("alloydb",),
    "Memorystore": ("memorystore",),
    "Pub/Sub": ("pub/sub", "pubsub"),
    "Dataflow": ("dataflow",),
    "Dataproc": ("dataproc",),
    "Composer": ("cloud composer",),
    "Vertex AI": ("vertex ai",),
    "Gemini": ("gemini",),
    "Looker": ("looker",),
    "Apigee": ("apigee",),
    "Cloud Load Balancing": ("cloud load balancing", "load balancer", "load balancing"),
    "Cloud CDN": ("cloud cdn",),
    "Cloud DNS": ("cloud dns",),
    "Cloud Armor": ("cloud armor",),
    "VPC": ("virtual private cloud",),
    "Cloud Build": ("cloud build",),
    "Artifact Registry": ("artifact registry",),
    "Cloud Logging": ("cloud logging",),
    "Cloud Monitoring": ("cloud monitoring",),
    "Security Command Center": ("security command center",),
    "Anthos": ("anthos",),
    "GKE Enterprise": ("gke enterprise",),
}

# Acronyms only count when written in upper case.
_ACRONYMS: Dict[str, Sequence[str]] = {
    "GKE": ("GKE",),
    "Compute Engine": ("GCE",),
    "IAM": ("IAM",),
    "VPC": ("VPC",),
    "Cloud KMS": ("KMS",),
}


def _compile() -> List[Tuple[str, Pattern[str]]]:
    patterns: List[Tuple[str, Pattern[str]]] = []
    for name, aliases in _PRODUCTS.items():
        alternatives = "|".join(re.escape(alias) for alias in sorted(aliases, key=len, reverse=True))
        patterns.append((name, re.compile(rf"(?<![\w/])(?:{alternatives})(?![\w/])", re.IGNORECASE)))
    for name, aliases in _ACRONYMS.items():
        alternatives = "|".join(re.escape(alias) for alias in aliases)
        patterns.append((name, re.compile(rf"\b(?:{alternatives})\b")))
    return patterns


_PATTERNS = _compile()


def extract_gcp_products(text: str) -> List[str]:
    """Return canonical product names found in ``text``, by first mention."""

    if not text:
        return []
    first_seen: Dict[str, int] = {}
    for name, pattern in _PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        position = match.start()
        if name not in first_seen or position < first_seen[name]:
            first_seen[name] = position
    return sorted(first_seen, key=lambda name: first_seen[name])


__all__ = ["extract_gcp_products"]
