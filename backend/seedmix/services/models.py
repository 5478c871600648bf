from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal

SeedKind = Literal["track", "artist"]
ResultSource = Literal["similar", "tags", "none"]


@dataclass(frozen=True, slots=True)
class Seed:
    kind: SeedKind
    id: str
    display_name: str = ""
    artist_name: str = ""


@dataclass(frozen=True, slots=True)
class SimilarityCandidate:
    artist_name: str
    track_name: str = ""

    @property
    def is_artist_only(self) -> bool:
        return not self.track_name


@dataclass(frozen=True, slots=True)
class Tag:
    name: str


@dataclass(slots=True)
class RecommendationResult:
    track_uris: List[str] = field(default_factory=list)
    source: ResultSource = "none"
    # Subset of track_uris whose artist shows up in the user's top tracks. Advisory only.
    boosted_uris: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "track_uris": list(self.track_uris),
            "source": self.source,
            "boosted_uris": list(self.boosted_uris),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "RecommendationResult":
        return cls(
            track_uris=[str(uri) for uri in payload.get("track_uris") or [] if uri],
            source=payload.get("source") or "none",
            boosted_uris=[str(uri) for uri in payload.get("boosted_uris") or [] if uri],
        )


def dedupe_uris(uris: Iterable[str | None]) -> List[str]:
    """Drop empty values and repeats, keeping first-seen order."""
    return list(dict.fromkeys(uri for uri in uris if uri))
