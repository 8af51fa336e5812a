"""Text normalisation and hashing helpers for embedding input."""

from __future__ import annotations

import hashlib

from jobfilter.schemas.jobs import JobSnapshot

_WHITESPACE = tuple("\u0009\u000a\u000b\u000c\u000d\u0020\u00a0\u1680\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a\u2028\u2029\u202f\u205f\u3000\ufeff")


def collapse_whitespace(text: str) -> str:
    """Collapse consecutive whitespace characters into single spaces."""

    if not text:
        return ""

    parts: list[str] = []
    current: list[str] = []
    for char in text:
        if char in _WHITESPACE:
            if current:
                parts.append("".join(current))
                current.clear()
        else:
            current.append(char)
    if current:
        parts.append("".join(current))
    return " ".join(parts)


def build_job_embedding_input(job: JobSnapshot) -> str:
    """Render the snapshot as one line in a fixed field order.

    Identical snapshots always produce identical input, which the embedding
    cache relies on when comparing text hashes.
    """

    salary_info = "; ".join(job.salary_info) if job.salary_info else ""
    benefits = "; ".join(job.benefits) if job.benefits else ""
    lines = [
        f"Title: {job.title}",
        f"Location: {job.location}",
        f"Salary Info: {salary_info}",
        f"Salary: {job.salary}",
        f"Benefits: {benefits}",
        f"Description: {job.description_text}",
        f"Seniority Level: {job.seniority_level or ''}",
        f"Employment Type: {job.employment_type}",
    ]
    return collapse_whitespace("\n".join(lines))


def text_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
