"""
Resume link rewriting.

Walks an arbitrary JSON-like resume tree, finds every ``{"href", "label"}``
object stored under a key named ``url`` whose href is an absolute http(s)
URL, and points it at a tracer redirect ``{base}/t/{token}``.

The walk is a generator over three node kinds (mapping, sequence, scalar):
mappings and sequences are descended, scalars end the branch, and a matched
``url`` object is yielded without descending into it. Siblings of a matched
node are still visited.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional

from errors import ConfigurationError
from repositories.tracer_link_repository import TracerLinkRepository
from schemas.models.job import JobDoc
from shared.crypto import hash_text
from shared.logging import get_logger
from shared.validators import is_http_url, resolve_public_base_url

log = get_logger(__name__)

TRACER_PATH_PREFIX = "/t"

URL_KEY = "url"
SOURCE_LABEL_MAX_LENGTH = 200
FIRST_NAME_MAX_LENGTH = 20
COMPANY_MAX_LENGTH = 30
DEFAULT_FIRST_NAME = "candidate"
DEFAULT_COMPANY = "company"

_NON_LETTERS_RE = re.compile(r"[^a-z]")


@dataclass(frozen=True)
class RewriteResult:
    rewritten_links: int


@dataclass
class UrlTarget:
    """One rewritable link node found in the tree."""

    node: dict
    source_path: str
    source_label: str
    destination_url: str


def _child_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _walk(value: Any, path: str) -> Iterator[tuple[str, dict]]:
    if isinstance(value, Mapping):
        for key, child in value.items():
            child_path = _child_path(path, str(key))
            if key == URL_KEY and isinstance(child, dict):
                yield child_path, child
                continue
            yield from _walk(child, child_path)
    elif isinstance(value, list):
        for index, item in enumerate(value):
            yield from _walk(item, f"{path}[{index}]")


def derive_source_label(label: Any, source_path: str) -> str:
    if isinstance(label, str):
        trimmed = label.strip()
        if trimmed:
            return trimmed[:SOURCE_LABEL_MAX_LENGTH]
    return source_path


def collect_url_targets(resume_data: Any) -> list[UrlTarget]:
    """Return every http(s) link node in document order.

    Non-container roots yield nothing.
    """
    targets = []
    for url_path, node in _walk(resume_data, ""):
        href = node.get("href")
        if not isinstance(href, str):
            continue
        destination = href.strip()
        if not destination or not is_http_url(destination):
            continue
        source_path = f"{url_path}.href"
        targets.append(
            UrlTarget(
                node=node,
                source_path=source_path,
                source_label=derive_source_label(node.get("label"), source_path),
                destination_url=destination,
            )
        )
    return targets


def sanitize_letters_only(value: Optional[str], max_length: int, default: str) -> str:
    """Fold accents, lowercase, keep ``a-z`` only and truncate.

    >>> sanitize_letters_only("Zoë-Anne", 20, "candidate")
    'zoeanne'
    """
    decomposed = unicodedata.normalize("NFKD", value or "")
    ascii_only = "".join(c for c in decomposed if not unicodedata.combining(c))
    letters = _NON_LETTERS_RE.sub("", ascii_only.lower())[:max_length]
    return letters or default


def _first_name(resume_data: Any) -> Optional[str]:
    if not isinstance(resume_data, Mapping):
        return None
    basics = resume_data.get("basics")
    if not isinstance(basics, Mapping):
        return None
    name = basics.get("name")
    if not isinstance(name, str):
        return None
    parts = name.split()
    return parts[0] if parts else None


def build_readable_slug_prefix(resume_data: Any, company_name: Optional[str]) -> str:
    first = sanitize_letters_only(
        _first_name(resume_data), FIRST_NAME_MAX_LENGTH, DEFAULT_FIRST_NAME
    )
    company = sanitize_letters_only(company_name, COMPANY_MAX_LENGTH, DEFAULT_COMPANY)
    return f"{first}-{company}"


def build_tracer_url(public_base_url: str, token: str) -> str:
    return f"{public_base_url.rstrip('/')}{TRACER_PATH_PREFIX}/{token}"


class LinkRewriterService:
    def __init__(
        self,
        link_repo: TracerLinkRepository,
        public_base_url_fallback: Optional[str] = None,
    ) -> None:
        self.link_repo = link_repo
        self.public_base_url_fallback = public_base_url_fallback

    async def rewrite_resume_links_with_tracer(
        self,
        *,
        job_id: str,
        resume_data: Any,
        public_base_url: str,
        company_name: Optional[str] = None,
    ) -> RewriteResult:
        """Rewrite every qualifying link node in place and report how many.

        Targets are processed one at a time. Store errors propagate.
        """
        targets = collect_url_targets(resume_data)
        if not targets:
            return RewriteResult(rewritten_links=0)

        slug_prefix = build_readable_slug_prefix(resume_data, company_name)
        for target in targets:
            link = await self.link_repo.get_or_create_tracer_link(
                job_id=job_id,
                source_path=target.source_path,
                source_label=target.source_label,
                destination_url=target.destination_url,
                destination_url_hash=hash_text(target.destination_url),
                slug_prefix=slug_prefix,
            )
            tracer_url = build_tracer_url(public_base_url, link.token)
            target.node["href"] = tracer_url
            target.node["label"] = tracer_url

        log.info("resume_links_rewritten", job_id=job_id, rewritten_links=len(targets))
        return RewriteResult(rewritten_links=len(targets))

    async def apply_tracer_links_for_job(
        self,
        job: JobDoc,
        resume_data: Any,
        request_origin: Optional[str] = None,
        company_name: Optional[str] = None,
    ) -> RewriteResult:
        """Rewrite *resume_data* when the job has tracer links switched on.

        Raises:
            ConfigurationError: tracing is on but no public base URL can be
                resolved from the request or configuration.
        """
        if not job.tracer_links_enabled:
            return RewriteResult(rewritten_links=0)

        base_url = resolve_public_base_url(request_origin, self.public_base_url_fallback)
        if base_url is None:
            log.error("tracer_base_url_missing", job_id=job.id)
            raise ConfigurationError(
                "Tracer links are enabled but no public base URL is configured"
            )

        return await self.rewrite_resume_links_with_tracer(
            job_id=job.id,
            resume_data=resume_data,
            public_base_url=base_url,
            company_name=company_name if company_name is not None else job.employer,
        )

