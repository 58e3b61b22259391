from __future__ import annotations

from typing import Dict, Iterable, Iterator, Optional, Protocol, Type

from shared.models import Sample, Transition


class TransitionDetector(Protocol):
    name: str
    display_name: str

    def reset(self) -> None:
        """Return to the initial phase; the next sample seeds the detector."""
        ...

    def step(self, sample: Sample) -> Optional[Transition]:
        """Consume one sample and return a Transition if it confirmed one."""
        ...

    def process(self, samples: Iterable[Sample]) -> Iterator[Transition]:
        """Lazily run `step` over `samples`."""
        ...

    def finalize(self) -> Iterable[Transition]:
        """Flush any trailing transitions at end of stream (optional)."""
        ...


DETECTOR_REGISTRY: Dict[str, Type[TransitionDetector]] = {}


def register_detector(cls: Type[TransitionDetector]) -> Type[TransitionDetector]:
    if not hasattr(cls, "name"):
        raise ValueError(f"Detector {cls} must have a 'name' attribute")
    DETECTOR_REGISTRY[cls.name] = cls
    return cls


def get_detector_class(name: str) -> Type[TransitionDetector]:
    """Look up ``name`` in the registry without instantiating it."""
    cls = DETECTOR_REGISTRY.get(name)
    if cls is None:
        available = ", ".join(sorted(DETECTOR_REGISTRY)) or "none"
        raise KeyError(f"No detector registered for {name!r}; available: {available}")
    return cls


def create_detector(name: str, **kwargs) -> TransitionDetector:
    """Instantiate the detector registered under ``name``."""
    return get_detector_class(name)(**kwargs)
