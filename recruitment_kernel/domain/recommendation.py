"""
Recommendation domain types (``recruitment_kernel.domain.recommendation``).

The recommendation is the canonical content of an origin record: who
recommended whom and why, plus the proof image the recommender attached.
Before it is posted, the proof travels from ``recommend.start`` to
``recommend.submit`` through the session stash as a ``ProofHandoff``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from recruitment_kernel.exceptions import InvalidProofError, ProofRequiredError

MAX_REASON_LENGTH = 1024
MAX_USERNAME_LENGTH = 100
MAX_GUILD_NAME_LENGTH = 100
MAX_FILE_NAME_LENGTH = 255
DEFAULT_PROOF_FILE_NAME = "proof.png"
DEFAULT_PROOF_MAX_BYTES = 8 * 1024 * 1024
DEFAULT_PROOF_CONTENT_TYPES: frozenset[str] = frozenset({
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/webp",
    "image/gif",
})


@dataclass(frozen=True)
class ProofAttachment:
    """Descriptor of an uploaded attachment; hosting is the transport's job."""

    url: str
    file_name: str | None = None
    content_type: str | None = None
    size: int = 0


@dataclass(frozen=True)
class ProofPolicy:
    max_bytes: int = DEFAULT_PROOF_MAX_BYTES
    content_types: frozenset[str] = field(
        default_factory=lambda: DEFAULT_PROOF_CONTENT_TYPES
    )


def validate_proof(
    proof: ProofAttachment | None,
    policy: ProofPolicy,
) -> ProofAttachment:
    """
    Raises:
        ProofRequiredError: No attachment.
        InvalidProofError: Too large, or a content type outside the policy.
            A missing content type is accepted.
    """
    if proof is None:
        raise ProofRequiredError()
    if proof.size > policy.max_bytes or (
        proof.content_type and proof.content_type not in policy.content_types
    ):
        raise InvalidProofError(proof.content_type, proof.size, policy.max_bytes)
    return proof


@dataclass(frozen=True)
class ProofHandoff:
    """Stash payload linking ``recommend.start`` to ``recommend.submit``."""

    proof_url: str
    proof_file_name: str
    source_guild_name: str | None = None


@dataclass(frozen=True)
class Recommendation:
    """Immutable view of one recommendations row."""

    origin_id: str
    channel_id: str
    recommender_id: str
    candidate_username: str
    reason: str
    proof_url: str
    created_at: datetime
    proof_file_name: str | None = None
    source_guild_name: str | None = None


def fit_file_name(name: str | None, limit: int = MAX_FILE_NAME_LENGTH) -> str:
    """Cut ``name`` to ``limit`` characters, keeping the extension when it fits."""
    name = (name or "").strip() or DEFAULT_PROOF_FILE_NAME
    if len(name) <= limit:
        return name
    stem, dot, extension = name.rpartition(".")
    if dot and stem and len(extension) < limit - 1:
        suffix = f".{extension}"
        return stem[: limit - len(suffix)] + suffix
    return name[:limit]


def make_handoff(proof: ProofAttachment, source_guild_name: str | None) -> ProofHandoff:
    """Stash payload for a validated proof, bounded to the stored column sizes."""
    guild = (source_guild_name or "").strip()[:MAX_GUILD_NAME_LENGTH]
    return ProofHandoff(
        proof_url=proof.url,
        proof_file_name=fit_file_name(proof.file_name),
        source_guild_name=guild or None,
    )
