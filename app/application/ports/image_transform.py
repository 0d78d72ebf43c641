from typing import List, Optional, Protocol
from dataclasses import dataclass, field


@dataclass
class ImageMetadata:
    width: int
    height: int
    format: Optional[str]
    colorspace: Optional[str]
    channels: int
    has_alpha: bool
    density: Optional[float] = None


@dataclass
class ImageValidation:
    is_valid: bool
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass
class TransformResult:
    thumbnail: Optional[bytes] = None
    optimized: Optional[bytes] = None
    metadata: Optional[ImageMetadata] = None
    compression_ratio: Optional[float] = None
    validation: Optional[ImageValidation] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class ImageTransformer(Protocol):
    def process(self, data: bytes) -> TransformResult:
        ...
